"""
Capture session: acquires the camera into a video sink, mirrors it onto a
preview canvas and grabs still frames on demand.

All work happens on the scheduler's thread. Results are reported through the
caller's callback as ``CaptureResult``; nothing is raised to the caller.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Protocol

from absence.canvas import Canvas, CanvasContext2D
from absence.device import DeviceProfile
from absence.events import Event
from absence.exceptions import MediaAccessError
from absence.media_devices import AcquisitionProbe, MediaDevices, MediaStream, probe_acquisition_api
from absence.models import CaptureCallback, CaptureResult, DetectedFace
from absence.scheduler import Scheduler
from absence.settings import ScanSettings
from absence.utils import FrameRateMeter
from absence.video import HAVE_CURRENT_DATA, VideoSink

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Camera capture API not available: this OpenCV build has no camera backend"


class FaceDetectorLike(Protocol):
    def estimate_faces(self, frame_bgr: Any) -> list[DetectedFace]:
        ...

    def close(self) -> None:
        ...


class SessionState(enum.Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    PLAYING = "playing"
    CAPTURING = "capturing"


class CaptureSession:
    """One attendance-photo interaction: at most one video/canvas pair."""

    def __init__(
        self,
        media_devices: MediaDevices,
        scheduler: Scheduler,
        profile: DeviceProfile,
        settings: ScanSettings | None = None,
        detector: FaceDetectorLike | None = None,
    ) -> None:
        self._media_devices = media_devices
        self._scheduler = scheduler
        self.profile = profile
        self._camera_index = settings.camera_index if settings else 0
        self._frame_rate = settings.frame_rate if settings else 60
        self._redraw_delay = (settings.redraw_interval_ms / 1000.0) if settings else 0.0
        self._capture_timeout = settings.capture_timeout if settings else None
        self._detector = detector
        self.video: VideoSink | None = None
        self.canvas: Canvas | None = None
        self.context: CanvasContext2D | None = None
        self.stream: MediaStream | None = None
        self.state = SessionState.IDLE
        self._playing = False
        self._redrawing = False
        self.redraw_meter = FrameRateMeter()

    @property
    def probe(self) -> AcquisitionProbe:
        return self._media_devices.probe

    @property
    def detector(self) -> FaceDetectorLike | None:
        return self._detector

    def set_detector(self, detector: FaceDetectorLike | None) -> None:
        """Attach a detector loaded after the session started (models load in the background)."""
        self._detector = detector

    def has_get_user_media(self) -> bool:
        return self.probe.supported

    def is_video_playing(self) -> bool:
        return self._playing

    # -- enable -------------------------------------------------------------

    def enable(self, video: VideoSink | None, canvas: Canvas | None, callback: CaptureCallback) -> None:
        """Acquire the camera into ``video`` and mirror it onto ``canvas``."""
        if self.video is not None or video is None or canvas is None:
            return
        if not self.has_get_user_media():
            logger.error(UNSUPPORTED_MESSAGE)
            callback(CaptureResult.failed(UNSUPPORTED_MESSAGE))
            return

        self.video = video
        self.canvas = canvas
        self.context = canvas.get_context("2d")
        self.state = SessionState.ACQUIRING
        constraints = self.profile.constraints(self._camera_index, self._frame_rate)
        logger.info(
            "Requesting camera %s at %sx%s (%s)",
            constraints.video.device_index,
            constraints.video.width,
            constraints.video.height,
            "mobile" if self.profile.is_mobile else "desktop",
        )

        try:
            stream = self._media_devices.get_user_media(constraints)
        except MediaAccessError as exc:
            message = f"The following error occurred: {exc.name}: {exc.message}"
            logger.error(message)
            # Sinks stay attached: a failed session is not retried, callers start a new one.
            self.state = SessionState.IDLE
            callback(CaptureResult.failed(message))
            return

        video.add_event_listener("play", self._on_play)
        self.play_video(stream, callback)

    def play_video(self, stream: MediaStream, callback: CaptureCallback) -> None:
        video, canvas, context = self.video, self.canvas, self.context
        if video is None or canvas is None or context is None:
            return
        self.stream = stream
        video.muted = False
        video.src_object = stream
        video.disable_picture_in_picture = True

        def on_loaded(_event: Event) -> None:
            self._playing = True
            if self.state is SessionState.ACQUIRING:
                self.state = SessionState.PLAYING
            logger.info("Camera playing (%s)", stream.backend_name)
            callback(CaptureResult.ok())

        video.add_event_listener("loadeddata", on_loaded, once=True)
        video.play()

        context.translate(canvas.width, 0)
        context.scale(-1, 1)

    # -- redraw loop ----------------------------------------------------------

    def _on_play(self, _event: Event) -> None:
        if self.profile.is_mobile or self._redrawing:
            return
        self._redrawing = True
        self.redraw_meter.reset()
        self._draw_video()

    def _draw_video(self) -> None:
        video, canvas, context = self.video, self.canvas, self.context
        if video is None or canvas is None or context is None:
            self._redrawing = False
            return
        if video.paused or video.ended:
            self._redrawing = False
            logger.info("Redraw loop stopped at %.1f fps", self.redraw_meter.fps)
            return
        if context.draw_image(video, 0, 0, canvas.width, canvas.height):
            self.redraw_meter.tick()
        if self._redraw_delay > 0:
            self._scheduler.call_later(self._redraw_delay, self._draw_video)
        else:
            self._scheduler.call_soon(self._draw_video)

    # -- capture --------------------------------------------------------------

    def capture(self, preview: Canvas | None, callback: CaptureCallback, timeout: float | None = None) -> None:
        """Draw the current video frame into ``preview``; no-op without a video."""
        video = self.video
        if preview is None or video is None:
            return
        if video.ready_state >= HAVE_CURRENT_DATA:
            self._capture_now(preview, callback)
            return

        timeout = self._capture_timeout if timeout is None else timeout
        if timeout is not None and timeout <= 0:
            timeout = None
        timer = None

        def on_loaded(_event: Event) -> None:
            if timer is not None:
                timer.cancel()
            self._capture_now(preview, callback)

        video.add_event_listener("loadeddata", on_loaded, once=True)
        if timeout is not None:
            def on_timeout() -> None:
                video.remove_event_listener("loadeddata", on_loaded)
                message = f"Timed out after {timeout:g}s waiting for the first video frame"
                logger.warning(message)
                callback(CaptureResult.failed(message))

            timer = self._scheduler.call_later(timeout, on_timeout)

    def _capture_now(self, preview: Canvas, callback: CaptureCallback) -> None:
        video = self.video
        if video is None:
            return
        self.state = SessionState.CAPTURING
        preview.get_context("2d").draw_image(video, 0, 0, preview.width, preview.height)
        faces = self._detect_faces(video.current_frame)
        logger.info("Captured frame %s (%s face(s))", video.frame_count, len(faces))
        callback(CaptureResult.ok(faces))

    def _detect_faces(self, frame: Any) -> list[DetectedFace]:
        detector = self._detector
        if detector is None or frame is None:
            return []
        try:
            return list(detector.estimate_faces(frame))
        except Exception:  # noqa: BLE001
            # Capture still succeeds; the broken detector is dropped for the rest of the session.
            logger.exception("Face detection failed; discarding detector")
            self._detector = None
            try:
                detector.close()
            except Exception:  # noqa: BLE001
                logger.exception("Closing the failed face detector raised")
            return []


def build_session(
    settings: ScanSettings,
    scheduler: Scheduler,
    detector: FaceDetectorLike | None = None,
    registry: Any = None,
) -> CaptureSession:
    """Probe the capture backends once and wire a session for this host."""
    probe = probe_acquisition_api(registry, preferred_order=settings.backend_order)
    devices = MediaDevices(probe, probe_reads=settings.probe_reads)
    return CaptureSession(devices, scheduler, DeviceProfile.current(settings), settings, detector)
