"""
GestureStabilizer - temporal filter that turns the noisy per-frame gesture
stream into a confirmed gesture that is safe to act on.
"""
from collections import deque
from typing import Deque, Tuple

from .gesture_classifier import Gesture

# Frames of full agreement needed to switch to a new gesture
CONFIRM_FRAMES = 5
# Consecutive NONE frames that clear the gesture
RELEASE_FRAMES = 3


class GestureStabilizer:
    """
    Debounces raw gestures with a rolling window.

    A new gesture is confirmed only after CONFIRM_FRAMES identical samples,
    while losing the hand clears it after RELEASE_FRAMES NONE samples so the
    output never sticks on a gesture the user has stopped making.
    """

    def __init__(self) -> None:
        self._history: Deque[Gesture] = deque(maxlen=CONFIRM_FRAMES)
        self._confirmed = Gesture.NONE

    def observe(self, raw: Gesture) -> Gesture:
        """Feed one raw gesture and return the (possibly unchanged) confirmed gesture."""
        self._history.append(raw)

        all_match = (
            len(self._history) == CONFIRM_FRAMES
            and all(g == raw for g in self._history)
        )
        recent = list(self._history)[-RELEASE_FRAMES:]
        quick_release = (
            raw == Gesture.NONE
            and len(recent) == RELEASE_FRAMES
            and all(g == Gesture.NONE for g in recent)
        )

        if all_match or quick_release:
            self._confirmed = raw

        return self._confirmed

    @property
    def confirmed(self) -> Gesture:
        return self._confirmed

    @property
    def history(self) -> Tuple[Gesture, ...]:
        """Snapshot of the window, oldest first."""
        return tuple(self._history)

    def reset(self) -> None:
        self._history.clear()
        self._confirmed = Gesture.NONE
