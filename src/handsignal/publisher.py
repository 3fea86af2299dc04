"""
Delivery of per-frame hand data to consumers.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List
import logging

from .gesture_classifier import Gesture

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandData:
    """
    Output record for one processed frame.

    x and y are only meaningful when detected is True; otherwise they hold
    the default midpoint.
    """
    gesture: Gesture
    x: float
    y: float
    detected: bool

    def to_dict(self) -> Dict:
        return {
            "gesture": self.gesture.name,
            "x": self.x,
            "y": self.y,
            "detected": self.detected,
        }


HandDataHandler = Callable[[HandData], None]


class HandDataPublisher:
    """Hands a fresh HandData to every registered handler, once per processed frame."""

    def __init__(self) -> None:
        self._handlers: List[HandDataHandler] = []

    def on_hand_data(self, handler: HandDataHandler) -> None:
        """Register a consumer callback."""
        self._handlers.append(handler)

    def remove_handler(self, handler: HandDataHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, gesture: Gesture, x: float, y: float, detected: bool) -> HandData:
        data = HandData(gesture=gesture, x=x, y=y, detected=detected)
        for handler in list(self._handlers):
            try:
                handler(data)
            except Exception:
                # A broken consumer must not stop the frame loop
                logger.exception("Hand data handler %r failed", handler)
        return data
