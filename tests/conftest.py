"""
Fakes standing in for OpenCV capture devices and the videoio backend registry.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from absence.media_devices import AcquisitionApi, AcquisitionProbe, MediaDevices
from absence.scheduler import LoopScheduler
from absence.settings import ScanSettings

CAP_V4L2 = 200
CAP_DSHOW = 700
CAP_GSTREAMER = 1800


def make_frame(width: int = 640, height: int = 480, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class FakeCapture:
    """Mimics cv2.VideoCapture for one device on one backend."""

    def __init__(self, frames: list[np.ndarray] | None, opened: bool = True) -> None:
        self._frames = list(frames or [])
        self._opened = opened
        self.props: dict[int, float] = {}
        self.released = False
        self.reads = 0

    def isOpened(self) -> bool:
        return self._opened and not self.released

    def read(self):
        self.reads += 1
        if self.released or not self._frames:
            return False, None
        return True, self._frames.pop(0)

    def set(self, prop: int, value: float) -> bool:
        self.props[prop] = value
        return True

    def get(self, prop: int) -> float:
        return self.props.get(prop, 0.0)

    def release(self) -> None:
        self.released = True


class FakeCaptureFactory:
    """Callable like cv2.VideoCapture(index, api); records every open."""

    def __init__(
        self,
        frames: dict[int, list[np.ndarray]] | None = None,
        closed_backends: set[int] | None = None,
        silent_backends: set[int] | None = None,
    ) -> None:
        self.frames = frames or {}
        self.closed_backends = closed_backends or set()
        self.silent_backends = silent_backends or set()
        self.opened: list[tuple[int, int | None]] = []
        self.captures: list[FakeCapture] = []

    def __call__(self, index: int, api: int | None = None) -> FakeCapture:
        self.opened.append((index, api))
        if index not in self.frames or api in self.closed_backends:
            cap = FakeCapture(None, opened=False)
        elif api in self.silent_backends:
            cap = FakeCapture(None, opened=True)
        else:
            cap = FakeCapture(self.frames[index])
        self.captures.append(cap)
        return cap


class FakeRegistry:
    """Mimics cv2.videoio_registry."""

    def __init__(self, backends: dict[int, str]) -> None:
        self._backends = backends

    def getCameraBackends(self) -> list[int]:
        return list(self._backends)

    def getBackendName(self, backend_id: int) -> str:
        return self._backends[backend_id]


@pytest.fixture
def settings(tmp_path: Path) -> ScanSettings:
    return ScanSettings(project_root=tmp_path, redraw_interval_ms=0)


@pytest.fixture
def scheduler() -> LoopScheduler:
    return LoopScheduler(sleep=lambda _s: None)


@pytest.fixture
def frames() -> list[np.ndarray]:
    return [make_frame(seed=i) for i in range(40)]


@pytest.fixture
def capture_factory(frames) -> FakeCaptureFactory:
    return FakeCaptureFactory({0: frames})


@pytest.fixture
def standard_probe() -> AcquisitionProbe:
    return AcquisitionProbe(AcquisitionApi.STANDARD, (("V4L2", CAP_V4L2),))


@pytest.fixture
def media_devices(standard_probe, capture_factory) -> MediaDevices:
    return MediaDevices(standard_probe, capture_factory=capture_factory, probe_reads=2, sleep=lambda _s: None)


@pytest.fixture
def unsupported_devices(capture_factory) -> MediaDevices:
    return MediaDevices(AcquisitionProbe(AcquisitionApi.UNSUPPORTED), capture_factory=capture_factory)
