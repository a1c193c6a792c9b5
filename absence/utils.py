"""
Small helpers shared by the session and the UI.
"""

import time
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Callable, Deque


class FrameRateMeter:
    """Frames per second over the last ``window`` redraws."""

    def __init__(self, window: int = 30, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._stamps: Deque[float] = deque(maxlen=window)

    def tick(self) -> None:
        self._stamps.append(self._clock())

    @property
    def fps(self) -> float:
        if len(self._stamps) < 2:
            return 0.0
        span = self._stamps[-1] - self._stamps[0]
        return (len(self._stamps) - 1) / span if span > 0 else 0.0

    def reset(self) -> None:
        self._stamps.clear()


def capture_path(directory: Path, now: datetime | None = None) -> Path:
    """Timestamped PNG path for a captured attendance photo."""
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S-%f")
    return directory / f"absence-{stamp}.png"
