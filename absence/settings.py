"""
Station settings, read from ``ABSENCE_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL_BASE_URL = "https://storage.googleapis.com/mediapipe-models"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _env_csv(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(token.strip().upper() for token in raw.split(",") if token.strip())


@dataclass
class ScanSettings:
    project_root: Path
    camera_index: int = 0
    user_agent: str | None = None
    backend_order: tuple[str, ...] = ()
    frame_rate: int = 60
    probe_reads: int = 6
    canvas_width: int = 640
    canvas_height: int = 480
    preview_width: int = 640
    preview_height: int = 480
    redraw_interval_ms: int = 5
    capture_timeout: float | None = None
    model_base_url: str = DEFAULT_MODEL_BASE_URL
    face_model: str = "blaze_face_short_range.tflite"
    feature_model: str = "mobilenet_v3_large.tflite"
    feature_input_size: int = 224
    min_detection_confidence: float = 0.5
    save_captures: bool = True
    log_level: str = "INFO"

    @property
    def model_dir(self) -> Path:
        return self.project_root / "models"

    @property
    def capture_dir(self) -> Path:
        return self.project_root / "captures"

    @property
    def log_dir(self) -> Path:
        return self.project_root / "logs"

    def ensure_directories(self) -> None:
        self.model_dir.mkdir(parents=True, exist_ok=True)
        self.capture_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls, project_root: Path) -> "ScanSettings":
        # A timeout of 0 (the default) keeps the indefinite wait for the first frame.
        timeout = _env_float("ABSENCE_CAPTURE_TIMEOUT", 0.0)
        return cls(
            project_root=project_root,
            camera_index=max(0, _env_int("ABSENCE_CAMERA_INDEX", 0)),
            user_agent=os.getenv("ABSENCE_USER_AGENT") or None,
            backend_order=_env_csv("ABSENCE_CAMERA_BACKEND_ORDER"),
            frame_rate=max(1, _env_int("ABSENCE_FRAME_RATE", 60)),
            probe_reads=max(1, _env_int("ABSENCE_PROBE_READS", 6)),
            canvas_width=max(1, _env_int("ABSENCE_CANVAS_WIDTH", 640)),
            canvas_height=max(1, _env_int("ABSENCE_CANVAS_HEIGHT", 480)),
            preview_width=max(1, _env_int("ABSENCE_PREVIEW_WIDTH", 640)),
            preview_height=max(1, _env_int("ABSENCE_PREVIEW_HEIGHT", 480)),
            redraw_interval_ms=max(0, _env_int("ABSENCE_REDRAW_INTERVAL_MS", 5)),
            capture_timeout=timeout if timeout > 0 else None,
            model_base_url=os.getenv("ABSENCE_MODEL_BASE_URL", DEFAULT_MODEL_BASE_URL).rstrip("/"),
            min_detection_confidence=min(1.0, max(0.0, _env_float("ABSENCE_FACE_CONFIDENCE", 0.5))),
            save_captures=_env_bool("ABSENCE_SAVE_CAPTURES", True),
            log_level=os.getenv("ABSENCE_LOG_LEVEL", "INFO").upper(),
        )
