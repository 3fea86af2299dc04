"""
MediaPipe Hand Landmarker wrapper using the Tasks API.
Turns a camera frame plus timestamp into zero or one hand landmark sets.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple
import logging
import cv2
import numpy as np
import mediapipe as mp

from .config import MediaPipeConfig
from .errors import InitializationError

logger = logging.getLogger(__name__)

# MediaPipe Tasks API imports
BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
VisionRunningMode = mp.tasks.vision.RunningMode

MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"

Landmark = Tuple[float, float, float]


@dataclass(frozen=True)
class HandLandmarks:
    """
    Normalized hand landmarks from MediaPipe.

    Attributes:
        landmarks: 21 (x, y, z) tuples, normalized 0-1 (z is relative depth)
        handedness: 'Left' or 'Right'
        confidence: Detection confidence 0-1
    """
    landmarks: Tuple[Landmark, ...]
    handedness: str = "Unknown"
    confidence: float = 1.0

    # MediaPipe landmark indices for convenience
    WRIST = 0
    THUMB_TIP = 4
    INDEX_TIP = 8
    MIDDLE_TIP = 12
    RING_TIP = 16
    PINKY_TIP = 20

    FINGERTIPS = (THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP)
    COUNT = 21

    def __post_init__(self):
        if len(self.landmarks) != self.COUNT:
            raise ValueError(f"Expected {self.COUNT} landmarks, got {len(self.landmarks)}")

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]], **kwargs) -> "HandLandmarks":
        """Build from any sequence of (x, y, z) triples."""
        return cls(landmarks=tuple((float(p[0]), float(p[1]), float(p[2])) for p in points), **kwargs)

    def get(self, index: int) -> Landmark:
        """Get landmark by index."""
        return self.landmarks[index]

    @property
    def thumb_tip(self) -> Landmark:
        return self.landmarks[self.THUMB_TIP]

    @property
    def index_tip(self) -> Landmark:
        return self.landmarks[self.INDEX_TIP]

    @property
    def wrist(self) -> Landmark:
        return self.landmarks[self.WRIST]

    @property
    def fingertips(self) -> Tuple[Landmark, ...]:
        return tuple(self.landmarks[i] for i in self.FINGERTIPS)


# Hand connections for drawing (same as MediaPipe's HAND_CONNECTIONS)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),      # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),      # Index
    (0, 9), (9, 10), (10, 11), (11, 12), # Middle
    (0, 13), (13, 14), (14, 15), (15, 16), # Ring
    (0, 17), (17, 18), (18, 19), (19, 20), # Pinky
    (5, 9), (9, 13), (13, 17),           # Palm
]


class HandTracker:
    """
    MediaPipe hand landmark detector.
    Uses the MediaPipe Tasks API (0.10+) in VIDEO mode.

    Camera handling lives in CaptureSession; this class only runs inference
    on frames it is handed.
    """

    # Default model path relative to project root
    DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "hand_landmarker.task"

    def __init__(self, config: Optional[MediaPipeConfig] = None, model_path: Optional[Path] = None):
        """
        Initialize hand tracker.

        Args:
            config: MediaPipe settings
            model_path: Path to hand_landmarker.task model file (overrides config)
        """
        self._config = config or MediaPipeConfig()
        if model_path is None and self._config.model_path:
            model_path = Path(self._config.model_path)
        self._model_path = Path(model_path) if model_path else self.DEFAULT_MODEL_PATH

        # Lazy initialization
        self._landmarker: Optional[HandLandmarker] = None
        self._last_timestamp_ms: int = -1
        self._last_frame: Optional[np.ndarray] = None
        self._last_landmarks: Optional[HandLandmarks] = None

    def start(self) -> None:
        """
        Load the landmark model and start a new timestamp sequence.

        Calling it again while loaded keeps the model but restarts the
        sequence, since a new capture session restarts its clock near 0.

        Raises:
            InitializationError: if the model is missing or cannot be created.
        """
        self._last_timestamp_ms = -1
        if self._landmarker is not None:
            return

        if not self._model_path.exists():
            raise InitializationError(
                f"Model file not found: {self._model_path}. Download from: {MODEL_URL}"
            )

        if self._config.use_gpu:
            try:
                self._landmarker = HandLandmarker.create_from_options(
                    self._build_options(BaseOptions.Delegate.GPU)
                )
                logger.info("GPU delegate enabled for MediaPipe")
            except (AttributeError, RuntimeError, ValueError) as e:
                logger.warning("GPU delegate failed: %s, using CPU", e)

        if self._landmarker is None:
            try:
                self._landmarker = HandLandmarker.create_from_options(self._build_options(None))
            except Exception as e:
                raise InitializationError(f"Could not load hand landmarker: {e}") from e

    def _build_options(self, delegate) -> HandLandmarkerOptions:
        if delegate is None:
            base_opts = BaseOptions(model_asset_path=str(self._model_path))
        else:
            base_opts = BaseOptions(model_asset_path=str(self._model_path), delegate=delegate)

        return HandLandmarkerOptions(
            base_options=base_opts,
            running_mode=VisionRunningMode.VIDEO,
            num_hands=self._config.num_hands,
            min_hand_detection_confidence=self._config.min_detection_confidence,
            min_hand_presence_confidence=self._config.min_presence_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
        )

    def stop(self) -> None:
        """Release the MediaPipe graph."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        self._last_frame = None
        self._last_landmarks = None

    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Optional[HandLandmarks]:
        """
        Detect at most one hand in a BGR frame.

        Args:
            frame: BGR image as delivered by OpenCV
            timestamp_ms: Frame timestamp in milliseconds

        Returns:
            HandLandmarks for the first hand, or None if no hand was found.
        """
        if self._landmarker is None:
            raise InitializationError("HandTracker.detect() called before start()")

        self._last_frame = frame

        # Convert BGR to RGB for MediaPipe
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        # VIDEO mode requires strictly increasing integer timestamps
        ts = int(timestamp_ms)
        if ts <= self._last_timestamp_ms:
            ts = self._last_timestamp_ms + 1
        self._last_timestamp_ms = ts

        result = self._landmarker.detect_for_video(mp_image, ts)

        if not result.hand_landmarks:
            self._last_landmarks = None
            return None

        # Extract first hand
        hand_landmarks = result.hand_landmarks[0]
        handedness = result.handedness[0][0] if result.handedness else None

        self._last_landmarks = HandLandmarks(
            landmarks=tuple((lm.x, lm.y, lm.z) for lm in hand_landmarks),
            handedness=handedness.category_name if handedness else "Unknown",
            confidence=handedness.score if handedness else 1.0,
        )
        return self._last_landmarks

    def get_frame_with_landmarks(
        self,
        landmarks: Optional[HandLandmarks] = None,
        mirror: bool = True,
    ) -> Optional[np.ndarray]:
        """
        Get last processed frame with landmark overlay for debugging.

        Args:
            landmarks: If provided, draw these; otherwise the last detection.
            mirror: Flip horizontally so the preview reads like a mirror.

        Returns:
            Frame with landmarks drawn, or None if no frame available.
        """
        if self._last_frame is None:
            return None

        frame = self._last_frame.copy()
        landmarks = landmarks or self._last_landmarks
        if landmarks is not None:
            draw_landmarks(frame, landmarks)

        if mirror:
            frame = cv2.flip(frame, 1)
        return frame

    @property
    def is_running(self) -> bool:
        return self._landmarker is not None


def draw_landmarks(frame: np.ndarray, landmarks: HandLandmarks) -> None:
    """Draw landmark points and bone connections onto a BGR frame in place."""
    h, w = frame.shape[:2]
    for x, y, _ in landmarks.landmarks:
        cv2.circle(frame, (int(x * w), int(y * h)), 4, (197, 183, 255), -1)

    for start_idx, end_idx in HAND_CONNECTIONS:
        start = landmarks.get(start_idx)
        end = landmarks.get(end_idx)
        start_pos = (int(start[0] * w), int(start[1] * h))
        end_pos = (int(end[0] * w), int(end[1] * h))
        cv2.line(frame, start_pos, end_pos, (255, 176, 224), 2)
