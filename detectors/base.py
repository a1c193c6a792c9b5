"""
Base interface shared by the detectors run over captured frames.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class DetectorBase(ABC):
    """Subclass and implement ``init`` and ``close``; settings come as a plain dict."""

    detector_id: str = ""
    display_name: str = ""

    @staticmethod
    @abstractmethod
    def default_settings() -> dict[str, Any]:
        """Return default settings dict (e.g. min_detection_confidence)."""
        ...

    @abstractmethod
    def init(self, settings: dict[str, Any]) -> None:
        """Load the model with the given settings."""
        ...

    @property
    @abstractmethod
    def ready(self) -> bool:
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the MediaPipe task instance."""
        ...
