"""
Frame scheduler: the per-tick loop that moves a frame through
detection, classification, stabilization and publishing.
"""
from typing import Optional, Protocol
import logging
import time

import numpy as np

from .camera import CameraAcquisition, VideoFrame
from .errors import TransientFrameError
from .gesture_classifier import GestureClassifier
from .gesture_stabilizer import GestureStabilizer
from .hand_tracker import HandLandmarks
from .publisher import HandData, HandDataPublisher

logger = logging.getLogger(__name__)


class LandmarkDetector(Protocol):
    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Optional[HandLandmarks]:
        ...


class FrameScheduler:
    """
    Runs one tick per external cadence step.

    Each tick does nothing unless the scheduler is enabled, the capture
    session is active, and the video has advanced to a frame it has not seen.
    The camera and the tick cadence run at independent rates, so most
    stale-frame skips are expected.
    """

    def __init__(
        self,
        acquisition: CameraAcquisition,
        detector: LandmarkDetector,
        publisher: HandDataPublisher,
        classifier: Optional[GestureClassifier] = None,
        stabilizer: Optional[GestureStabilizer] = None,
        tick_rate: int = 60,
    ):
        self._acquisition = acquisition
        self._detector = detector
        self._publisher = publisher
        self._classifier = classifier or GestureClassifier()
        self._stabilizer = stabilizer or GestureStabilizer()
        self._tick_interval = 1.0 / tick_rate

        # Per-session state, only touched from the ticking context
        self._enabled = False
        self._last_timestamp: Optional[float] = None
        self._last_landmarks: Optional[HandLandmarks] = None
        self._last_data: Optional[HandData] = None
        self._ticks_processed = 0

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def reset(self) -> None:
        """Forget everything from the previous session."""
        self._stabilizer.reset()
        self._last_timestamp = None
        self._last_landmarks = None
        self._last_data = None
        self._ticks_processed = 0

    def tick(self) -> bool:
        """
        Run one step.

        Returns:
            True if the scheduler should be called again, False once disabled.
        """
        if not self._enabled:
            return False

        try:
            frame = self._next_frame()
        except TransientFrameError:
            return True

        self._process(frame)
        return True

    def _next_frame(self) -> VideoFrame:
        session = self._acquisition.session
        if session is None or not session.is_active:
            raise TransientFrameError("no active session")

        frame = session.current_frame()
        if frame is None or frame.is_empty:
            raise TransientFrameError("camera not warmed up")
        if frame.timestamp_ms == self._last_timestamp:
            raise TransientFrameError("frame already processed")
        return frame

    def _process(self, frame: VideoFrame) -> None:
        self._last_timestamp = frame.timestamp_ms

        landmarks = self._detector.detect(frame.image, frame.timestamp_ms)
        self._last_landmarks = landmarks

        result = self._classifier.classify(landmarks)
        confirmed = self._stabilizer.observe(result.gesture)
        self._last_data = self._publisher.publish(confirmed, result.x, result.y, result.detected)
        self._ticks_processed += 1

    def run(self) -> None:
        """Tick at the configured rate until disabled."""
        while True:
            loop_start = time.perf_counter()
            if not self.tick():
                break

            # Sleep off the rest of the tick interval
            elapsed = time.perf_counter() - loop_start
            sleep_time = self._tick_interval - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

    @property
    def last_landmarks(self) -> Optional[HandLandmarks]:
        return self._last_landmarks

    @property
    def last_data(self) -> Optional[HandData]:
        return self._last_data

    @property
    def ticks_processed(self) -> int:
        return self._ticks_processed

    @property
    def stabilizer(self) -> GestureStabilizer:
        return self._stabilizer
