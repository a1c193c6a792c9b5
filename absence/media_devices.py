"""
Camera acquisition over OpenCV capture backends.

The probe runs once per session and classifies what the OpenCV build offers:
the platform's native camera backend (STANDARD), only older or generic
backends (LEGACY_PREFIXED), or nothing usable (UNSUPPORTED).
"""

from __future__ import annotations

import enum
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Sequence, Tuple

import cv2

from absence.device import MediaStreamConstraints
from absence.exceptions import MediaAccessError

logger = logging.getLogger(__name__)

# Native camera backend per platform, by OpenCV backend name.
_STANDARD_BACKENDS = {
    "win32": ("MSMF",),
    "linux": ("V4L2",),
    "darwin": ("AVFOUNDATION",),
    "ios": ("AVFOUNDATION",),
    "android": ("ANDROID",),
}

# Fallback order for everything else the build may carry.
_LEGACY_ORDER = ("DSHOW", "V4L2", "MSMF", "AVFOUNDATION", "GSTREAMER", "FFMPEG", "ANDROID")


class AcquisitionApi(enum.Enum):
    STANDARD = "standard"
    LEGACY_PREFIXED = "legacy_prefixed"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class AcquisitionProbe:
    api: AcquisitionApi
    backends: Tuple[Tuple[str, int], ...] = ()

    @property
    def supported(self) -> bool:
        return self.api is not AcquisitionApi.UNSUPPORTED


def _backend_name(registry: Any, backend_id: int) -> str:
    try:
        return str(registry.getBackendName(backend_id)).upper()
    except cv2.error:
        return f"BACKEND_{backend_id}"


def probe_acquisition_api(
    registry: Any = None,
    platform: str | None = None,
    preferred_order: Sequence[str] = (),
) -> AcquisitionProbe:
    """Classify the camera backends available in this OpenCV build."""
    registry = registry if registry is not None else cv2.videoio_registry
    platform = platform or sys.platform
    if platform.startswith("linux"):
        platform = "linux"

    available: List[Tuple[str, int]] = []
    for backend_id in registry.getCameraBackends():
        available.append((_backend_name(registry, int(backend_id)), int(backend_id)))
    if not available:
        logger.warning("OpenCV build exposes no camera backends")
        return AcquisitionProbe(AcquisitionApi.UNSUPPORTED)

    by_name = dict(available)
    standard_names = _STANDARD_BACKENDS.get(platform, ())
    standard = [(name, by_name[name]) for name in standard_names if name in by_name]
    if standard:
        logger.info("Camera API: standard (%s)", ", ".join(name for name, _ in standard))
        return AcquisitionProbe(AcquisitionApi.STANDARD, tuple(standard))

    order = [name.upper() for name in preferred_order] + [n for n in _LEGACY_ORDER if n not in preferred_order]
    legacy: List[Tuple[str, int]] = []
    for name in order:
        if name in by_name and (name, by_name[name]) not in legacy:
            legacy.append((name, by_name[name]))
    for entry in available:
        if entry not in legacy:
            legacy.append(entry)
    logger.info("Camera API: legacy fallback chain (%s)", ", ".join(name for name, _ in legacy))
    return AcquisitionProbe(AcquisitionApi.LEGACY_PREFIXED, tuple(legacy))


@dataclass
class MediaStream:
    """Live camera feed. Owned by ``MediaDevices``; consumers only read from it."""

    capture: Any
    backend_name: str
    device_index: int
    facing_mode: str = "user"
    active: bool = True
    _settings: dict = field(default_factory=dict, repr=False)

    def read(self) -> tuple[bool, Any]:
        if not self.active:
            return False, None
        ok, frame = self.capture.read()
        if not ok or frame is None:
            return False, None
        return True, frame

    def get_settings(self) -> dict:
        if not self._settings:
            fps = float(self.capture.get(cv2.CAP_PROP_FPS) or 0.0)
            self._settings = {
                "width": int(self.capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
                "height": int(self.capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0),
                "frame_rate": fps,
                "facing_mode": self.facing_mode,
                "device_index": self.device_index,
                "backend": self.backend_name,
            }
        return dict(self._settings)

    def stop(self) -> None:
        if self.active:
            self.active = False
            self.capture.release()
            logger.info("Camera stream stopped (index %s, %s)", self.device_index, self.backend_name)


class MediaDevices:
    """Opens camera streams through the backends chosen by the probe."""

    def __init__(
        self,
        probe: AcquisitionProbe,
        capture_factory: Callable[..., Any] = cv2.VideoCapture,
        probe_reads: int = 6,
        probe_delay: float = 0.03,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.probe = probe
        self._capture_factory = capture_factory
        self._probe_reads = max(1, probe_reads)
        self._probe_delay = probe_delay
        self._sleep = sleep
        self.requests = 0

    def get_user_media(self, constraints: MediaStreamConstraints) -> MediaStream:
        if constraints.video is None:
            raise MediaAccessError("TypeError", "At least one of audio and video must be requested")
        if not self.probe.supported:
            raise MediaAccessError("NotSupportedError", "No camera capture backend is available")

        self.requests += 1
        video = constraints.video
        opened_without_frames: List[str] = []
        attempted: List[str] = []
        for backend_name, backend_id in self.probe.backends:
            attempted.append(backend_name)
            cap = self._capture_factory(video.device_index, backend_id)
            if not cap.isOpened():
                cap.release()
                continue
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, video.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, video.height)
            cap.set(cv2.CAP_PROP_FPS, video.frame_rate)
            # Some backends report opened=True but never deliver frames.
            if self._delivers_frames(cap):
                logger.info(
                    "Camera %s opened via %s (%sx%s hint)",
                    video.device_index,
                    backend_name,
                    video.width,
                    video.height,
                )
                return MediaStream(
                    capture=cap,
                    backend_name=backend_name,
                    device_index=video.device_index,
                    facing_mode=video.facing_mode,
                )
            opened_without_frames.append(backend_name)
            cap.release()

        tried = ", ".join(attempted) if attempted else "no backend"
        if opened_without_frames:
            raise MediaAccessError(
                "NotReadableError",
                f"Camera {video.device_index} opened but delivered no frames (tried {tried})",
            )
        raise MediaAccessError(
            "NotFoundError",
            f"Requested device not found: camera {video.device_index} (tried {tried})",
        )

    def _delivers_frames(self, cap: Any) -> bool:
        for _ in range(self._probe_reads):
            ok, frame = cap.read()
            if ok and frame is not None:
                return True
            self._sleep(self._probe_delay)
        return False


def _probe_opencv(max_cameras: int = 8, capture_factory: Callable[..., Any] = cv2.VideoCapture) -> List[Tuple[int, str]]:
    """Probe indices 0..max_cameras-1; return (index, 'Camera N') for each that opens."""
    result: List[Tuple[int, str]] = []
    for i in range(max_cameras):
        cap = capture_factory(i)
        if cap.isOpened():
            result.append((i, f"Camera {i}"))
        cap.release()
    return result


def enumerate_devices(max_cameras: int = 8) -> List[Tuple[int, str]]:
    """
    Return (index, label) for attached cameras.
    On Windows, DirectShow (pygrabber) supplies the real device names in OpenCV index order;
    elsewhere cameras are probed and labelled "Camera N".
    """
    if sys.platform == "win32":
        from pygrabber.dshow_graph import FilterGraph

        devices = FilterGraph().get_input_devices()
        if devices:
            return list(enumerate(devices))
    return _probe_opencv(max_cameras)
