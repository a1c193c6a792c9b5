"""
MediaPipe face detector run over each captured photo (bounding boxes and keypoints).
"""

from __future__ import annotations

import logging
from typing import Any

import cv2
import mediapipe as mp
import numpy as np

from absence.exceptions import DetectorError
from absence.models import DetectedFace
from absence.settings import ScanSettings
from detectors.base import DetectorBase
from detectors.model_loader import get_model_path

logger = logging.getLogger(__name__)


class FaceDetector(DetectorBase):
    detector_id = "face_detector"
    display_name = "Face Detector"

    def __init__(self, settings: ScanSettings) -> None:
        self._settings = settings
        self._detector: mp.tasks.vision.FaceDetector | None = None

    @staticmethod
    def default_settings() -> dict[str, Any]:
        return {
            "min_detection_confidence": 0.5,
            "min_suppression_threshold": 0.3,
        }

    @property
    def ready(self) -> bool:
        return self._detector is not None

    def init(self, settings: dict[str, Any]) -> None:
        self.close()
        model_path = str(get_model_path(self._settings.face_model, self._settings))
        base_options = mp.tasks.BaseOptions(model_asset_path=model_path)
        options = mp.tasks.vision.FaceDetectorOptions(
            base_options=base_options,
            running_mode=mp.tasks.vision.RunningMode.IMAGE,
            min_detection_confidence=float(
                settings.get("min_detection_confidence", self._settings.min_detection_confidence)
            ),
            min_suppression_threshold=float(settings.get("min_suppression_threshold", 0.3)),
        )
        try:
            self._detector = mp.tasks.vision.FaceDetector.create_from_options(options)
        except (RuntimeError, ValueError) as exc:
            raise DetectorError(f"Failed to create face detector from {model_path}: {exc}") from exc
        logger.info("Face detector ready (%s)", model_path)

    def estimate_faces(self, frame_bgr: np.ndarray) -> list[DetectedFace]:
        if self._detector is None:
            raise DetectorError("Face detector is not initialized")
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self._detector.detect(mp_image)
        h, w = frame_bgr.shape[:2]
        faces: list[DetectedFace] = []
        for det in result.detections or []:
            score = 0.0
            if det.categories:
                score = det.categories[0].score or 0.0
            box = det.bounding_box
            faces.append(
                DetectedFace(
                    score=float(score),
                    origin_x=int(box.origin_x),
                    origin_y=int(box.origin_y),
                    width=int(box.width),
                    height=int(box.height),
                    keypoints=[(kp.x * w, kp.y * h) for kp in (det.keypoints or [])],
                )
            )
        return faces

    def close(self) -> None:
        if self._detector is not None:
            self._detector.close()
            self._detector = None
