"""
Scheduler backed by the Qt event loop, so session loops run on the UI thread.
"""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer

from absence.scheduler import Scheduler, TimerHandle


class QtScheduler(Scheduler):
    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent
        self._timers: set[QTimer] = set()

    def call_soon(self, callback: Callable[[], None]) -> None:
        QTimer.singleShot(0, callback)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        timer = QTimer(self._parent)
        timer.setSingleShot(True)

        def fire() -> None:
            self._timers.discard(timer)
            timer.deleteLater()
            if not handle.cancelled:
                callback()

        timer.timeout.connect(fire)
        self._timers.add(timer)
        timer.start(max(0, int(delay_s * 1000)))
        return handle

    def cancel_all(self) -> None:
        for timer in list(self._timers):
            timer.stop()
            timer.deleteLater()
        self._timers.clear()
