"""
HandPipeline - the public entry point.

Wires camera acquisition, landmark detection and the frame scheduler
together behind start()/stop() and two callback registrations.
"""
from typing import Callable, List, Optional
import logging

from .camera import CameraAcquisition, CaptureStatus
from .config import Config
from .errors import CaptureError, InitializationError
from .hand_tracker import HandTracker
from .publisher import HandDataHandler, HandDataPublisher
from .scheduler import FrameScheduler

logger = logging.getLogger(__name__)

StatusHandler = Callable[[CaptureStatus, Optional[str]], None]


class HandPipeline:
    """
    Usage:
        pipeline = HandPipeline(config)
        pipeline.on_hand_data(print)
        if pipeline.start():
            pipeline.run()   # blocks until stop() is called
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        tracker: Optional[HandTracker] = None,
        acquisition: Optional[CameraAcquisition] = None,
    ):
        self._config = config or Config()
        self._tracker = tracker or HandTracker(self._config.mediapipe)
        self._acquisition = acquisition or CameraAcquisition.from_config(self._config.camera)
        self._publisher = HandDataPublisher()
        self._scheduler = FrameScheduler(
            self._acquisition,
            self._tracker,
            self._publisher,
            tick_rate=self._config.scheduler.tick_rate,
        )

        self._status_handlers: List[StatusHandler] = []
        self._acquisition.on_status_change(self._notify_status)
        self._running = False
        self._stop_requested = False

    def on_hand_data(self, handler: HandDataHandler) -> None:
        self._publisher.on_hand_data(handler)

    def on_status_change(self, handler: StatusHandler) -> None:
        self._status_handlers.append(handler)

    def _notify_status(self, status: CaptureStatus, message: Optional[str] = None) -> None:
        for handler in list(self._status_handlers):
            try:
                handler(status, message)
            except Exception:
                logger.exception("Status handler %r failed", handler)

    def start(self) -> bool:
        """
        Enable processing with a freshly acquired camera.

        Returns:
            True if the camera is active, False on a capture error (already
            reported through the status handlers).

        Raises:
            InitializationError: if the landmark model cannot be loaded.
        """
        self._scheduler.disable()
        self._stop_requested = False

        try:
            self._tracker.start()
        except InitializationError as e:
            logger.error("Hand tracker initialization failed: %s", e)
            self._acquisition.fail(str(e))
            raise

        try:
            self._acquisition.acquire()
        except CaptureError:
            return False

        # stop() may arrive from another thread while the camera warms up
        if self._stop_requested:
            self._acquisition.release()
            return False

        self._scheduler.reset()
        self._scheduler.enable()
        return True

    def stop(self) -> None:
        """
        Disable processing. A running loop exits on its next tick and
        releases the camera; without a loop the camera is released here.
        """
        self._stop_requested = True
        self._scheduler.disable()
        if not self._running:
            self._acquisition.release()

    def run(self) -> None:
        """Tick until stop() is called, then release the camera."""
        self._running = True
        try:
            self._scheduler.run()
        finally:
            self._running = False
            self._acquisition.release()

    def tick(self) -> bool:
        """Single step for callers that drive their own loop."""
        if self._scheduler.tick():
            return True
        self._acquisition.release()
        return False

    def close(self) -> None:
        """Stop and unload the landmark model."""
        self.stop()
        self._acquisition.release()
        self._tracker.stop()

    @property
    def is_enabled(self) -> bool:
        return self._scheduler.enabled

    @property
    def status(self) -> CaptureStatus:
        return self._acquisition.status

    @property
    def tracker(self) -> HandTracker:
        return self._tracker

    @property
    def scheduler(self) -> FrameScheduler:
        return self._scheduler
