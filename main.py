"""
Absence Scan: entry point.
Run: python main.py              (camera window)
     python main.py --headless --output photo.png
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Reduce TensorFlow/MediaPipe console noise (INFO and WARNING)
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

from absence.canvas import Canvas
from absence.exceptions import AbsenceError
from absence.logger import setup_logger
from absence.media_devices import enumerate_devices
from absence.models import CaptureResult
from absence.scheduler import LoopScheduler
from absence.session import build_session
from absence.settings import ScanSettings
from absence.video import VideoSink

logger = logging.getLogger("absence.main")

HEADLESS_TIMEOUT_S = 10.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Attendance photo capture station")
    parser.add_argument("--camera", type=int, default=None, help="Camera index override")
    parser.add_argument("--user-agent", default=None, help="User agent used to pick mobile or desktop resolution")
    parser.add_argument("--list-cameras", action="store_true", help="List attached cameras and exit")
    parser.add_argument("--headless", action="store_true", help="Take one photo without opening a window")
    parser.add_argument("--output", type=Path, default=None, help="Photo path for --headless")
    parser.add_argument("--no-detect", action="store_true", help="Skip face detection in --headless mode")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Seconds to wait for the first frame in --headless mode (default {HEADLESS_TIMEOUT_S:g}, 0 waits without limit)",
    )
    return parser


def run_headless(settings: ScanSettings, output: Path, detect: bool, timeout: float) -> int:
    scheduler = LoopScheduler()
    detector = None
    if detect:
        from detectors.face_detector import FaceDetector

        detector = FaceDetector(settings)
        detector.init(detector.default_settings())

    session = build_session(settings, scheduler, detector=detector)
    video = VideoSink(scheduler)
    canvas = Canvas(settings.canvas_width, settings.canvas_height)
    photo = Canvas(settings.preview_width, settings.preview_height)
    results: dict[str, CaptureResult] = {}

    session.enable(video, canvas, lambda result: results.setdefault("enable", result))
    session.capture(photo, lambda result: results.setdefault("capture", result), timeout=timeout)

    def finished() -> bool:
        enabled = results.get("enable")
        return "capture" in results or (enabled is not None and not enabled.success)

    scheduler.run_until(finished, max_iterations=1_000_000)
    video.pause()
    if session.stream is not None:
        session.stream.stop()
    if session.detector is not None:
        session.detector.close()

    result = results.get("capture") or results.get("enable") or CaptureResult.failed("Capture did not complete")
    print(json.dumps(result.as_dict(), indent=2))
    if not result.success:
        return 1
    output.parent.mkdir(parents=True, exist_ok=True)
    if not photo.save(str(output)):
        logger.error("Failed to write %s", output)
        return 1
    logger.info("Saved photo: %s", output)
    return 0


def run_window(settings: ScanSettings) -> int:
    from PySide6.QtWidgets import QApplication

    from ui.scan_window import ScanWindow

    app = QApplication(sys.argv)
    window = ScanWindow(settings)
    window.show()
    return app.exec()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = ScanSettings.from_env(Path.cwd())
    if args.camera is not None:
        settings.camera_index = args.camera
    if args.user_agent:
        settings.user_agent = args.user_agent
    settings.ensure_directories()
    setup_logger(settings.log_dir, settings.log_level)

    if args.list_cameras:
        for index, name in enumerate_devices():
            print(f"{index}: {name}")
        return 0

    try:
        if args.headless:
            output = args.output or settings.capture_dir / "headless.png"
            timeout = args.timeout if args.timeout is not None else (settings.capture_timeout or HEADLESS_TIMEOUT_S)
            return run_headless(settings, output, not args.no_detect, timeout)
        return run_window(settings)
    except AbsenceError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
