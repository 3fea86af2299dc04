"""
Monitor window - shows the pointer, confirmed gesture and camera status.
"""
from typing import Optional, Tuple
from PyQt5.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton
from PyQt5.QtCore import Qt, QPoint, pyqtSignal
from PyQt5.QtGui import QPainter, QPen, QColor, QImage, QPixmap
import numpy as np

from handsignal.gesture_classifier import Gesture
from handsignal.publisher import HandData


# Cursor color per confirmed gesture
GESTURE_COLORS = {
    Gesture.NONE: QColor(120, 120, 120),
    Gesture.OPEN_PALM: QColor(224, 176, 255),
    Gesture.CLOSED_FIST: QColor(255, 183, 197),
    Gesture.PINCH: QColor(100, 200, 255),
}


class PointerCanvas(QWidget):
    """Draws the hand pointer in normalized coordinates."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._cursor_pos: Optional[Tuple[float, float]] = None
        self._gesture = Gesture.NONE
        self.setMinimumSize(320, 240)

    def set_hand(self, data: HandData):
        self._gesture = data.gesture
        # Coordinates are meaningless without a detected hand
        self._cursor_pos = (data.x, data.y) if data.detected else None
        self.update()

    def paintEvent(self, event):
        """Draw the background and cursor."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QColor(20, 20, 28))

        if self._cursor_pos:
            w, h = self.width(), self.height()
            cx, cy = self._cursor_pos
            color = GESTURE_COLORS[self._gesture]

            # Pinch and fist draw smaller, "grabbing" cursors
            radius = 24 if self._gesture == Gesture.OPEN_PALM else 12
            pen = QPen(color)
            pen.setWidth(3)
            painter.setPen(pen)
            painter.setBrush(QColor(color.red(), color.green(), color.blue(), 90))
            painter.drawEllipse(QPoint(int(cx * w), int(cy * h)), radius, radius)


class MonitorWindow(QMainWindow):
    """
    Main window for monitor mode.

    The start/stop button emits start_requested / stop_requested; the
    application connects them to the pipeline worker.
    """
    start_requested = pyqtSignal()
    stop_requested = pyqtSignal()

    def __init__(self, width: int = 640, height: int = 480, parent=None):
        super().__init__(parent)
        self._running = False
        self.setWindowTitle("HandSignal Monitor")
        self.resize(width, height)
        self._setup_ui()

    def _setup_ui(self):
        """Build the UI."""
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)
        self.setCentralWidget(central)

        header = QHBoxLayout()
        self.gesture_label = QLabel("Gesture: NONE")
        self.status_label = QLabel("Camera: idle")
        self.toggle_button = QPushButton("Start")
        self.toggle_button.clicked.connect(self._handle_toggle)
        header.addWidget(self.gesture_label)
        header.addStretch(1)
        header.addWidget(self.status_label)
        header.addWidget(self.toggle_button)
        layout.addLayout(header)

        self.canvas = PointerCanvas()
        layout.addWidget(self.canvas, stretch=1)

        self.webcam_preview = QLabel()
        self.webcam_preview.setAlignment(Qt.AlignCenter)
        self.webcam_preview.setMaximumHeight(150)
        self.webcam_preview.setScaledContents(True)
        layout.addWidget(self.webcam_preview)

    def _handle_toggle(self):
        if self._running:
            self.stop_requested.emit()
        else:
            self.start_requested.emit()

    def set_running(self, running: bool):
        self._running = running
        self.toggle_button.setText("Stop" if running else "Start")
        if not running:
            self.webcam_preview.clear()

    def set_hand_data(self, data: HandData):
        self.gesture_label.setText(f"Gesture: {data.gesture.name}")
        self.canvas.set_hand(data)

    def set_status(self, status: str, message: str = ""):
        text = f"Camera: {status}"
        if message:
            text = f"{text} ({message})"
        self.status_label.setText(text)

    def set_error(self, message: str):
        self.status_label.setText(f"Error: {message}")
        self.set_running(False)

    def set_webcam_frame(self, frame: np.ndarray):
        """
        Update the webcam preview.

        Args:
            frame: BGR numpy array with landmarks drawn, already mirrored
        """
        if frame is None:
            self.webcam_preview.clear()
            return

        rgb = frame[:, :, ::-1].copy()
        h, w, ch = rgb.shape
        qimg = QImage(rgb.data, w, h, ch * w, QImage.Format_RGB888)
        self.webcam_preview.setPixmap(QPixmap.fromImage(qimg))
