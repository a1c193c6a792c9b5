"""
MobileNetV3 feature extractor (MediaPipe ImageEmbedder).

``load`` fetches the model over HTTP when it is not cached yet, runs one
warm-up inference on a blank input so the first real capture is not slow,
then reports readiness through the status callback.
"""

from __future__ import annotations

import logging
from typing import Any

import cv2
import mediapipe as mp
import numpy as np

from absence.exceptions import DetectorError
from absence.models import StatusCallback
from absence.settings import ScanSettings
from detectors.base import DetectorBase
from detectors.model_loader import get_model_path

logger = logging.getLogger(__name__)

READY_MESSAGE = "Ready to scan.."


class FeatureExtractor(DetectorBase):
    detector_id = "feature_extractor"
    display_name = "MobileNet Features"

    def __init__(self, settings: ScanSettings) -> None:
        self._settings = settings
        self._embedder: mp.tasks.vision.ImageEmbedder | None = None

    @staticmethod
    def default_settings() -> dict[str, Any]:
        return {"l2_normalize": True, "quantize": False}

    @property
    def ready(self) -> bool:
        return self._embedder is not None

    @property
    def input_size(self) -> int:
        return self._settings.feature_input_size

    def init(self, settings: dict[str, Any]) -> None:
        self.close()
        model_path = str(get_model_path(self._settings.feature_model, self._settings))
        options = mp.tasks.vision.ImageEmbedderOptions(
            base_options=mp.tasks.BaseOptions(model_asset_path=model_path),
            running_mode=mp.tasks.vision.RunningMode.IMAGE,
            l2_normalize=bool(settings.get("l2_normalize", True)),
            quantize=bool(settings.get("quantize", False)),
        )
        try:
            self._embedder = mp.tasks.vision.ImageEmbedder.create_from_options(options)
        except (RuntimeError, ValueError) as exc:
            raise DetectorError(f"Failed to create feature extractor from {model_path}: {exc}") from exc

    def load(self, status_callback: StatusCallback | None = None) -> None:
        """Init with defaults, warm up once, then report ``status_message``."""
        self.init(self.default_settings())
        size = self.input_size
        self.embed(np.zeros((size, size, 3), dtype=np.uint8))
        logger.info("Feature extractor warmed up (%sx%s)", size, size)
        if status_callback is not None:
            status_callback({"status_message": READY_MESSAGE})

    def embed(self, frame_bgr: np.ndarray) -> np.ndarray:
        if self._embedder is None:
            raise DetectorError("Feature extractor is not initialized")
        size = self.input_size
        if frame_bgr.shape[:2] != (size, size):
            frame_bgr = cv2.resize(frame_bgr, (size, size), interpolation=cv2.INTER_AREA)
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(rgb))
        result = self._embedder.embed(mp_image)
        if not result.embeddings:
            raise DetectorError("Feature extractor returned no embedding")
        return np.asarray(result.embeddings[0].embedding, dtype=np.float32)

    def close(self) -> None:
        if self._embedder is not None:
            self._embedder.close()
            self._embedder = None
