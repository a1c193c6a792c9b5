"""
Deferred-callback scheduling. The capture session never blocks: the playback
pump and the redraw loop reschedule themselves one step at a time.
"""

from __future__ import annotations

import heapq
import itertools
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque


class TimerHandle:
    """Returned by ``call_later``; ``cancel()`` prevents the callback from running."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler(ABC):
    """Where deferred callbacks run. Implementations are single-threaded."""

    @abstractmethod
    def call_soon(self, callback: Callable[[], None]) -> None:
        ...

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class LoopScheduler(Scheduler):
    """Cooperative run loop for headless capture (and tests).

    ``clock`` and ``sleep`` are injectable so timers can be driven without
    real waiting.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._ready: Deque[tuple[Callable[[], None], TimerHandle | None]] = deque()
        self._timers: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._ready.append((callback, None))

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        heapq.heappush(self._timers, (self._clock() + max(0.0, delay_s), next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        live_timers = sum(1 for _, _, h in self._timers if not h.cancelled)
        live_ready = sum(1 for _, h in self._ready if h is None or not h.cancelled)
        return live_ready + live_timers

    def run_once(self) -> bool:
        """Run everything currently due. Returns False when nothing is left to do."""
        now = self._clock()
        while self._timers and self._timers[0][0] <= now:
            _, _, handle = heapq.heappop(self._timers)
            if not handle.cancelled:
                self._ready.append((handle.callback, handle))
        if not self._ready:
            while self._timers and self._timers[0][2].cancelled:
                heapq.heappop(self._timers)
            if not self._timers:
                return False
            self._sleep(max(0.0, self._timers[0][0] - now))
            return True
        for _ in range(len(self._ready)):
            callback, handle = self._ready.popleft()
            # An earlier callback in this turn may have cancelled a due timer.
            if handle is None or not handle.cancelled:
                callback()
        return True

    def run_until(self, predicate: Callable[[], bool], max_iterations: int = 10_000) -> bool:
        """Run until ``predicate()`` holds or the loop drains. Returns the predicate's value."""
        for _ in range(max_iterations):
            if predicate():
                return True
            if not self.run_once():
                break
        return predicate()
