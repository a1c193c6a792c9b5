# Capture session, camera acquisition, video sink and canvas

from absence.canvas import Canvas
from absence.models import CaptureResult, DetectedFace
from absence.session import CaptureSession, SessionState, build_session
from absence.video import VideoSink

__all__ = [
    "Canvas",
    "CaptureResult",
    "CaptureSession",
    "DetectedFace",
    "SessionState",
    "VideoSink",
    "build_session",
]
