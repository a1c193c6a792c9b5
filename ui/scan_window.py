"""
Scan window: mirrored live camera, "Take Photo" button, captured photo preview,
status line for model loading, and a "No Camera" pane with Try Again.
"""

from __future__ import annotations

import logging

import numpy as np
from PySide6.QtCore import QObject, QThread, QTimer, Signal, Slot
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QStackedWidget,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from absence.canvas import Canvas
from absence.events import Event
from absence.models import CaptureResult
from absence.session import CaptureSession, build_session
from absence.settings import ScanSettings
from absence.utils import capture_path
from absence.video import VideoSink
from ui.panels import CaptureResultPanel, FrameView, LogsPanel, QtLogHandler
from ui.qt_scheduler import QtScheduler

logger = logging.getLogger(__name__)

PHOTO_HOLD_MS = 3000
RESUME_LOADING_MS = 1000

_PAGE_LIVE = 0
_PAGE_PHOTO = 1
_PAGE_NO_CAMERA = 2


class ModelLoadWorker(QObject):
    """Loads the feature extractor (with warm-up) and face detector off the UI thread."""

    status = Signal(str)
    load_done = Signal(bool, str, object)  # success, error_message, face_detector

    def __init__(self, settings: ScanSettings) -> None:
        super().__init__()
        self._settings = settings
        self.extractor = None

    def run(self) -> None:
        # Imported here so the window opens before mediapipe finishes importing.
        from detectors.face_detector import FaceDetector
        from detectors.feature_extractor import FeatureExtractor

        try:
            self.extractor = FeatureExtractor(self._settings)
            self.extractor.load(lambda result: self.status.emit(result.get("status_message", "")))
            detector = FaceDetector(self._settings)
            detector.init(detector.default_settings())
            self.load_done.emit(True, "", detector)
        except Exception as e:  # noqa: BLE001
            logger.exception("Model loading failed")
            self.load_done.emit(False, str(e), None)


class ScanWindow(QWidget):
    """Attendance photo station."""

    def __init__(self, settings: ScanSettings) -> None:
        super().__init__()
        self.setWindowTitle("Absence Scan")
        self._settings = settings
        self._scheduler = QtScheduler(self)
        self._session: CaptureSession | None = None
        self._video: VideoSink | None = None
        self._canvas: Canvas | None = None
        self._photo_canvas = Canvas(settings.preview_width, settings.preview_height)
        self._face_detector = None
        self._feature_extractor = None
        self._load_thread: QThread | None = None
        self._load_worker: ModelLoadWorker | None = None

        layout = QHBoxLayout(self)

        # --- Center: live view / photo / no camera ---
        center = QWidget()
        center_layout = QVBoxLayout(center)
        self._status_label = QLabel("Loading models...")
        self._status_label.setStyleSheet("background-color: #333; color: white; font-weight: bold; padding: 4px;")
        center_layout.addWidget(self._status_label)
        self._stack = QStackedWidget()
        self._live_view = FrameView("Starting camera...")
        self._photo_view = FrameView("")
        self._stack.addWidget(self._live_view)
        self._stack.addWidget(self._photo_view)
        self._stack.addWidget(self._build_no_camera_pane())
        center_layout.addWidget(self._stack, stretch=1)
        self._capture_btn = QPushButton("Take Photo")
        self._capture_btn.setEnabled(False)
        self._capture_btn.setStyleSheet("background-color: #c0392b; color: white; font-weight: bold; padding: 8px;")
        self._capture_btn.clicked.connect(self._on_capture)
        center_layout.addWidget(self._capture_btn)
        layout.addWidget(center, stretch=1)

        # --- Right: tabs (Capture, Logs) ---
        tabs = QTabWidget()
        self._result_panel = CaptureResultPanel()
        tabs.addTab(self._result_panel, "Capture")
        self._logs_panel = LogsPanel()
        tabs.addTab(self._logs_panel, "Logs")
        layout.addWidget(tabs)

        self._log_handler = QtLogHandler(self._logs_panel)
        logging.getLogger().addHandler(self._log_handler)

        self._load_models()
        self._open_camera()
        self.resize(1200, 700)

    def _build_no_camera_pane(self) -> QWidget:
        pane = QWidget()
        pane_layout = QVBoxLayout(pane)
        pane_layout.addStretch()
        title = QLabel("<h1>No Camera</h1>")
        pane_layout.addWidget(title)
        self._no_camera_text = QLabel(
            "Please activate the camera, or try another device that has a camera."
        )
        self._no_camera_text.setWordWrap(True)
        pane_layout.addWidget(self._no_camera_text)
        retry_btn = QPushButton("Try Again")
        retry_btn.clicked.connect(self._on_retry)
        pane_layout.addWidget(retry_btn)
        pane_layout.addStretch()
        return pane

    # -- camera ---------------------------------------------------------------

    def _open_camera(self) -> None:
        detector = self._face_detector if self._face_detector is not None and self._face_detector.ready else None
        self._session = build_session(self._settings, self._scheduler, detector=detector)
        self._video = VideoSink(self._scheduler)
        self._canvas = Canvas(self._settings.canvas_width, self._settings.canvas_height)
        if self._session.profile.is_mobile:
            # No canvas redraw on mobile: show the stream directly, mirrored.
            self._video.add_event_listener("frame", self._on_video_frame)
        else:
            self._canvas.on_draw(self._on_canvas_drawn)
        self._stack.setCurrentIndex(_PAGE_LIVE)
        self._session.enable(self._video, self._canvas, self._on_camera_enabled)

    def _release_camera(self) -> None:
        if self._video is not None:
            self._video.pause()
        if self._session is not None and self._session.stream is not None:
            self._session.stream.stop()
        self._session = None
        self._video = None
        self._canvas = None

    def _on_camera_enabled(self, result: CaptureResult) -> None:
        if result.success:
            self._capture_btn.setEnabled(True)
            return
        self._capture_btn.setEnabled(False)
        self._no_camera_text.setText(result.error or "Camera unavailable.")
        self._stack.setCurrentIndex(_PAGE_NO_CAMERA)

    def _on_video_frame(self, event: Event) -> None:
        frame = event.target.current_frame
        if frame is not None and self._stack.currentIndex() == _PAGE_LIVE:
            self._live_view.show_frame(np.fliplr(frame))

    def _on_canvas_drawn(self, canvas: Canvas) -> None:
        if self._stack.currentIndex() == _PAGE_LIVE:
            self._live_view.show_frame(canvas.buffer)
        if self._session is not None and canvas.draw_count % 30 == 0:
            self.setWindowTitle(f"Absence Scan ({self._session.redraw_meter.fps:.1f} fps)")

    def _on_retry(self) -> None:
        self._release_camera()
        self._open_camera()

    # -- capture --------------------------------------------------------------

    def _on_capture(self) -> None:
        if self._session is None:
            return
        self._session.capture(self._photo_canvas, self._on_captured)

    def _on_captured(self, result: CaptureResult) -> None:
        self._result_panel.update_result(result.as_dict())
        if not result.success:
            self._status_label.setText(result.error or "Capture failed")
            return
        self._photo_view.show_frame(self._photo_canvas.buffer)
        self._stack.setCurrentIndex(_PAGE_PHOTO)
        self._capture_btn.setEnabled(False)
        if self._settings.save_captures:
            path = capture_path(self._settings.capture_dir)
            if self._photo_canvas.save(str(path)):
                logger.info("Saved photo: %s", path)
            else:
                logger.error("Failed to save photo: %s", path)
        QTimer.singleShot(PHOTO_HOLD_MS, self._resume_live)

    def _resume_live(self) -> None:
        self._stack.setCurrentIndex(_PAGE_LIVE)
        previous = self._status_label.text()
        self._status_label.setText("Loading...")

        def done() -> None:
            self._status_label.setText(previous)
            self._capture_btn.setEnabled(self._session is not None and self._session.is_video_playing())

        QTimer.singleShot(RESUME_LOADING_MS, done)

    # -- models ---------------------------------------------------------------

    def _load_models(self) -> None:
        self._load_worker = ModelLoadWorker(self._settings)
        self._load_thread = QThread()
        self._load_worker.moveToThread(self._load_thread)
        self._load_thread.started.connect(self._load_worker.run)
        self._load_worker.status.connect(self._status_label.setText)
        self._load_worker.load_done.connect(self._on_models_loaded)
        self._load_thread.start()

    @Slot(bool, str, object)
    def _on_models_loaded(self, success: bool, error_msg: str, detector: object) -> None:
        if self._load_thread is not None:
            self._load_thread.quit()
            self._load_thread.wait(2000)
            self._load_thread = None
        if not success:
            self._status_label.setText(f"Model loading failed: {error_msg}")
            return
        self._face_detector = detector
        if self._load_worker is not None:
            self._feature_extractor = self._load_worker.extractor
            self._load_worker = None
        if self._session is not None:
            self._session.set_detector(detector)

    def closeEvent(self, event) -> None:
        self._release_camera()
        self._scheduler.cancel_all()
        if self._load_thread is not None:
            self._load_thread.quit()
            self._load_thread.wait(2000)
        if self._face_detector is not None:
            self._face_detector.close()
        if self._feature_extractor is not None:
            self._feature_extractor.close()
        logging.getLogger().removeHandler(self._log_handler)
        event.accept()
