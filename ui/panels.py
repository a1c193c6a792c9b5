"""
Side panels: last capture (JSON), Logs, and the frame view used for live video and photos.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import numpy as np
from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import QLabel, QPlainTextEdit, QVBoxLayout, QWidget

from absence.logger import DATE_FORMAT


def _pretty_json(obj: Any) -> str:
    """Pretty-print dict/list for display."""
    try:
        return json.dumps(obj, indent=2, default=str)
    except (TypeError, ValueError):
        return str(obj)


class CaptureResultPanel(QWidget):
    """Shows the last capture result (faces with boxes and scores) as JSON."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._text = QPlainTextEdit(self)
        self._text.setReadOnly(True)
        self._text.setPlaceholderText("Detected faces appear here after a photo is taken.")
        layout.addWidget(self._text, stretch=1)

    def update_result(self, result: dict[str, Any] | None) -> None:
        self._text.setPlainText("" if result is None else _pretty_json(result))


class LogsPanel(QWidget):
    """Shows application log messages and errors."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self._text = QPlainTextEdit(self)
        self._text.setReadOnly(True)
        self._text.setMaximumBlockCount(2000)
        layout.addWidget(self._text)

    def append(self, message: str) -> None:
        self._text.appendPlainText(message)
        # Auto-scroll to bottom
        scrollbar = self._text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())


class _LogBridge(QObject):
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """Forwards log records to a LogsPanel; safe to emit from worker threads."""

    def __init__(self, panel: LogsPanel) -> None:
        super().__init__()
        self._bridge = _LogBridge()
        self._bridge.message.connect(panel.append, Qt.ConnectionType.QueuedConnection)
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", DATE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        self._bridge.message.emit(self.format(record))


class FrameView(QLabel):
    """Displays a BGR frame scaled to fit, keeping aspect ratio."""

    def __init__(self, placeholder: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(640, 480)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setStyleSheet("background-color: #000; color: #888;")
        self.setText(placeholder)

    def show_frame(self, frame_bgr: np.ndarray) -> None:
        frame_bgr = np.ascontiguousarray(frame_bgr)
        h, w = frame_bgr.shape[:2]
        qimg = QImage(frame_bgr.data, w, h, 3 * w, QImage.Format.Format_BGR888)
        self.setPixmap(QPixmap.fromImage(qimg).scaled(
            self.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        ))
