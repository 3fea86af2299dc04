"""
Per-frame gesture classification from hand landmarks.
Pure geometry: no history, no smoothing.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple
import math

from .hand_tracker import HandLandmarks


class Gesture(Enum):
    """Discrete gesture states."""
    NONE = auto()
    OPEN_PALM = auto()
    CLOSED_FIST = auto()
    PINCH = auto()


# Thresholds in normalized landmark space
PINCH_THRESHOLD = 0.05   # Thumb tip to index tip
FIST_THRESHOLD = 0.25    # Mean fingertip to wrist

# Pointer reported when no hand is visible
DEFAULT_POSITION = (0.5, 0.5)


@dataclass(frozen=True)
class Classification:
    """Raw result for one frame."""
    gesture: Gesture
    x: float = DEFAULT_POSITION[0]
    y: float = DEFAULT_POSITION[1]
    detected: bool = False


class GestureClassifier:
    """
    Classifies a single hand into NONE / OPEN_PALM / CLOSED_FIST / PINCH.

    Rules are checked in priority order and the first match wins:
    - Pinch: thumb tip within PINCH_THRESHOLD of index tip
    - Fist: fingertips on average within FIST_THRESHOLD of the wrist
    - Open palm: anything else
    """

    def classify(self, landmarks: Optional[HandLandmarks]) -> Classification:
        if landmarks is None:
            return Classification(gesture=Gesture.NONE)

        x, y = self.pointer_position(landmarks)
        return Classification(
            gesture=self.classify_gesture(landmarks),
            x=x,
            y=y,
            detected=True,
        )

    def classify_gesture(self, landmarks: HandLandmarks) -> Gesture:
        if self.pinch_distance(landmarks) < PINCH_THRESHOLD:
            return Gesture.PINCH
        if self.average_tip_distance(landmarks) < FIST_THRESHOLD:
            return Gesture.CLOSED_FIST
        return Gesture.OPEN_PALM

    @staticmethod
    def pointer_position(landmarks: HandLandmarks) -> Tuple[float, float]:
        """Wrist position with x mirrored for a front-facing camera."""
        wrist = landmarks.wrist
        return 1.0 - wrist[0], wrist[1]

    @classmethod
    def pinch_distance(cls, landmarks: HandLandmarks) -> float:
        return cls._distance_3d(landmarks.thumb_tip, landmarks.index_tip)

    @classmethod
    def average_tip_distance(cls, landmarks: HandLandmarks) -> float:
        wrist = landmarks.wrist
        tips = landmarks.fingertips
        return sum(cls._distance_3d(tip, wrist) for tip in tips) / len(tips)

    @staticmethod
    def _distance_3d(p1: Tuple[float, float, float], p2: Tuple[float, float, float]) -> float:
        dx = p1[0] - p2[0]
        dy = p1[1] - p2[1]
        dz = p1[2] - p2[2]
        return math.sqrt(dx*dx + dy*dy + dz*dz)
