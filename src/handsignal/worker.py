"""
Background worker for the hand pipeline.
Runs acquisition and the tick loop in a separate QThread to avoid blocking the UI.
"""
from typing import Optional
from PyQt5.QtCore import QObject, pyqtSignal, pyqtSlot

from .camera import CaptureStatus
from .errors import InitializationError
from .pipeline import HandPipeline
from .publisher import HandData


class PipelineWorker(QObject):
    """
    Worker class that owns a HandPipeline.
    Emits signals for UI updates.
    """
    # Signals
    hand_data = pyqtSignal(object)          # Emits HandData
    status_changed = pyqtSignal(str, str)   # status value, message ("" if none)
    frame_ready = pyqtSignal(object)        # Emits BGR frame with landmarks drawn
    error = pyqtSignal(str)
    finished = pyqtSignal()

    def __init__(self, config, pipeline: Optional[HandPipeline] = None, parent=None):
        super().__init__(parent)
        self._config = config
        self._pipeline = pipeline
        self._show_landmarks = config.ui.show_landmarks
        self._wired = False

    def _ensure_pipeline(self) -> HandPipeline:
        """Create the pipeline on first use so it lives in the worker thread."""
        if self._pipeline is None:
            self._pipeline = HandPipeline(self._config)
        if not self._wired:
            self._pipeline.on_hand_data(self._on_hand_data)
            self._pipeline.on_status_change(self._on_status)
            self._wired = True
        return self._pipeline

    def _on_hand_data(self, data: HandData):
        self.hand_data.emit(data)
        if self._show_landmarks:
            frame = self._pipeline.tracker.get_frame_with_landmarks()
            if frame is not None:
                self.frame_ready.emit(frame)

    def _on_status(self, status: CaptureStatus, message: Optional[str]):
        self.status_changed.emit(status.value, message or "")

    @pyqtSlot()
    def start_process(self):
        """Acquire the camera and tick until stopped. Runs in worker thread."""
        pipeline = self._ensure_pipeline()

        try:
            if pipeline.start():
                pipeline.run()
        except InitializationError as e:
            self.error.emit(str(e))
        except Exception as e:
            self.error.emit(f"Worker Exception: {str(e)}")
        finally:
            self.finished.emit()

    @pyqtSlot()
    def stop_process(self):
        """Signal the loop to stop; the camera is released in the worker thread."""
        if self._pipeline is not None:
            self._pipeline.stop()

    def shutdown(self):
        if self._pipeline is not None:
            self._pipeline.close()
