"""
Shared result types passed to session callbacks and returned by detectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class DetectedFace:
    score: float
    origin_x: int
    origin_y: int
    width: int
    height: int
    keypoints: list[tuple[float, float]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "label": "face",
            "score": self.score,
            "bbox": {
                "origin_x": self.origin_x,
                "origin_y": self.origin_y,
                "width": self.width,
                "height": self.height,
            },
            "keypoints": [list(p) for p in self.keypoints],
        }


@dataclass
class CaptureResult:
    """Callback payload: ``success`` with ``error`` set only on failure."""

    success: bool
    error: str | None = None
    faces: list[DetectedFace] = field(default_factory=list)

    @classmethod
    def ok(cls, faces: list[DetectedFace] | None = None) -> "CaptureResult":
        return cls(True, None, list(faces or []))

    @classmethod
    def failed(cls, error: str) -> "CaptureResult":
        return cls(False, error)

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "faces": [face.as_dict() for face in self.faces],
        }


CaptureCallback = Callable[[CaptureResult], None]
StatusCallback = Callable[[dict[str, Any]], None]
