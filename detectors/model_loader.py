"""
Ensures MediaPipe Tasks model files exist; downloads them from the model host if missing.
The host defaults to Google storage and can point at a local mirror or CDN.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
from pathlib import Path

from absence.exceptions import ModelLoadError
from absence.settings import ScanSettings

logger = logging.getLogger(__name__)

# Path of each known model under the model host
_MODEL_PATHS = {
    "blaze_face_short_range.tflite": "face_detector/blaze_face_short_range/float16/latest/blaze_face_short_range.tflite",
    "mobilenet_v3_large.tflite": "image_embedder/mobilenet_v3_large/float32/latest/mobilenet_v3_large.tflite",
    "mobilenet_v3_small.tflite": "image_embedder/mobilenet_v3_small/float32/latest/mobilenet_v3_small.tflite",
}


def model_url(filename: str, base_url: str) -> str:
    rel = _MODEL_PATHS.get(filename)
    if not rel:
        raise ModelLoadError(f"Unknown model: {filename}. Known: {list(_MODEL_PATHS)}")
    return f"{base_url.rstrip('/')}/{rel}"


def get_model_path(filename: str, settings: ScanSettings) -> Path:
    """Return path to the model file; download if not present."""
    path = settings.model_dir / filename
    if path.is_file():
        return path
    url = model_url(filename, settings.model_base_url)
    settings.model_dir.mkdir(parents=True, exist_ok=True)
    partial = path.with_suffix(path.suffix + ".part")
    logger.info("Downloading %s from %s", filename, url)
    try:
        urllib.request.urlretrieve(url, partial)
    except (urllib.error.URLError, OSError) as exc:
        partial.unlink(missing_ok=True)
        raise ModelLoadError(f"Failed to download {filename} from {url}: {exc}") from exc
    partial.replace(path)
    return path
