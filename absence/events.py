"""
Minimal DOM-style event target used by the video sink and canvas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

Listener = Callable[["Event"], Any]


@dataclass
class Event:
    type: str
    target: Any = None


class EventTarget:
    """Keeps listeners per event type; ``once`` listeners are dropped after firing."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}

    def add_event_listener(self, event_type: str, listener: Listener, once: bool = False) -> None:
        entries = self._listeners.setdefault(event_type, [])
        if any(fn == listener for fn, _ in entries):
            return
        entries.append((listener, once))

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        entries = self._listeners.get(event_type)
        if not entries:
            return
        self._listeners[event_type] = [(fn, once) for fn, once in entries if fn != listener]

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def dispatch_event(self, event_type: str) -> None:
        entries = self._listeners.get(event_type)
        if not entries:
            return
        # Listeners added while dispatching wait for the next dispatch; removed ones are skipped.
        snapshot = list(entries)
        event = Event(event_type, self)
        for entry in snapshot:
            current = self._listeners.get(event_type, [])
            if entry not in current:
                continue
            listener, once = entry
            if once:
                self._listeners[event_type] = [e for e in current if e != entry]
            listener(event)
