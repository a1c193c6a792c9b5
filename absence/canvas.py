"""
Canvas surface: a BGR numpy buffer with a 2D drawing context.

The context keeps an axis-aligned affine transform (translate/scale only),
which is all the mirrored preview needs. ``draw_image`` maps the destination
rectangle through the transform, flips the source where the transform
mirrors it, and copies pixels without interpolation when no resize is needed.
"""

from __future__ import annotations

from typing import Any, Callable

import cv2
import numpy as np

Transform = tuple[float, float, float, float, float, float]

IDENTITY: Transform = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


def _frame_of(source: Any) -> np.ndarray | None:
    """Accept a raw frame, a video sink or another canvas."""
    if source is None:
        return None
    if isinstance(source, np.ndarray):
        return source
    if isinstance(source, Canvas):
        return source.buffer
    return getattr(source, "current_frame", None)


class CanvasContext2D:
    def __init__(self, canvas: Canvas) -> None:
        self.canvas = canvas
        self._transform: Transform = IDENTITY

    @property
    def transform(self) -> Transform:
        """Current matrix as ``(a, b, c, d, e, f)``; x' = a*x + e, y' = d*y + f."""
        return self._transform

    def set_transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        if b or c:
            raise ValueError("Only axis-aligned transforms are supported")
        self._transform = (float(a), 0.0, 0.0, float(d), float(e), float(f))

    def reset_transform(self) -> None:
        self._transform = IDENTITY

    def translate(self, x: float, y: float) -> None:
        a, _, _, d, e, f = self._transform
        self._transform = (a, 0.0, 0.0, d, e + a * x, f + d * y)

    def scale(self, sx: float, sy: float) -> None:
        a, _, _, d, e, f = self._transform
        self._transform = (a * sx, 0.0, 0.0, d * sy, e, f)

    def _map(self, x: float, y: float) -> tuple[float, float]:
        a, _, _, d, e, f = self._transform
        return a * x + e, d * y + f

    def draw_image(
        self,
        source: Any,
        dx: float = 0,
        dy: float = 0,
        dw: float | None = None,
        dh: float | None = None,
    ) -> bool:
        """Draw ``source`` into the rectangle (dx, dy, dw, dh). Returns False if it has no pixels."""
        frame = _frame_of(source)
        if frame is None or frame.size == 0:
            return False
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        src_h, src_w = frame.shape[:2]
        dw = src_w if dw is None else dw
        dh = src_h if dh is None else dh

        x0, y0 = self._map(dx, dy)
        x1, y1 = self._map(dx + dw, dy + dh)
        flip_x = x1 < x0
        flip_y = y1 < y0
        left, right = int(round(min(x0, x1))), int(round(max(x0, x1)))
        top, bottom = int(round(min(y0, y1))), int(round(max(y0, y1)))
        width, height = right - left, bottom - top
        if width <= 0 or height <= 0:
            return False

        if (width, height) != (src_w, src_h):
            frame = cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)
        if flip_x and flip_y:
            frame = cv2.flip(frame, -1)
        elif flip_x:
            frame = cv2.flip(frame, 1)
        elif flip_y:
            frame = cv2.flip(frame, 0)

        buffer = self.canvas.buffer
        canvas_h, canvas_w = buffer.shape[:2]
        cl, ct = max(0, left), max(0, top)
        cr, cb = min(canvas_w, right), min(canvas_h, bottom)
        if cr <= cl or cb <= ct:
            return False
        buffer[ct:cb, cl:cr] = frame[ct - top:cb - top, cl - left:cr - left, :3]
        self.canvas.notify_drawn()
        return True

    def get_image_data(self, sx: int = 0, sy: int = 0, sw: int | None = None, sh: int | None = None) -> np.ndarray:
        """Copy of the raw pixels in device space (the transform does not apply)."""
        buffer = self.canvas.buffer
        sw = buffer.shape[1] - sx if sw is None else sw
        sh = buffer.shape[0] - sy if sh is None else sh
        return buffer[sy:sy + sh, sx:sx + sw].copy()

    def put_image_data(self, data: np.ndarray, dx: int = 0, dy: int = 0) -> None:
        buffer = self.canvas.buffer
        h = min(data.shape[0], buffer.shape[0] - dy)
        w = min(data.shape[1], buffer.shape[1] - dx)
        if h <= 0 or w <= 0:
            return
        buffer[dy:dy + h, dx:dx + w] = data[:h, :w]
        self.canvas.notify_drawn()

    def clear(self) -> None:
        self.canvas.buffer[:] = 0


class Canvas:
    """Drawing surface of fixed ``width`` x ``height``."""

    def __init__(self, width: int = 640, height: int = 480) -> None:
        self.width = int(width)
        self.height = int(height)
        self.buffer = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self._context: CanvasContext2D | None = None
        self._draw_listeners: list[Callable[[Canvas], None]] = []
        self.draw_count = 0

    def get_context(self, kind: str = "2d") -> CanvasContext2D:
        if kind != "2d":
            raise ValueError(f"Unsupported context type: {kind!r}")
        if self._context is None:
            self._context = CanvasContext2D(self)
        return self._context

    def on_draw(self, listener: Callable[[Canvas], None]) -> None:
        self._draw_listeners.append(listener)

    def notify_drawn(self) -> None:
        self.draw_count += 1
        for listener in list(self._draw_listeners):
            listener(self)

    def to_image(self) -> np.ndarray:
        return self.buffer.copy()

    def is_blank(self) -> bool:
        return not self.buffer.any()

    def save(self, path: str) -> bool:
        return bool(cv2.imwrite(str(path), self.buffer))
