import itertools

import numpy as np
import pytest

from handsignal.camera import CameraAcquisition, VideoFrame, VideoStream
from handsignal.config import CaptureTier
from handsignal.errors import CaptureError
from handsignal.hand_tracker import HandLandmarks

WRIST = (0.5, 0.5, 0.0)


def make_hand(tips=None, wrist=WRIST):
    """
    Build 21 landmarks with every point at the wrist except the given tips.

    Args:
        tips: {landmark index: (x, y, z)}
    """
    points = [wrist] * HandLandmarks.COUNT
    for index, point in (tips or {}).items():
        points[index] = point
    return HandLandmarks.from_points(points, handedness="Right")


def blank_image(width=64, height=48):
    return np.zeros((height, width, 3), dtype=np.uint8)


class FakeStream(VideoStream):
    """
    Stream that serves a fixed frame, or a fresh one per call when
    advancing=True.
    """

    def __init__(self, frame=None, advancing=False):
        self.frame = frame if frame is not None else VideoFrame(blank_image(), 33.0, 1)
        self.advancing = advancing
        self.stopped = False
        self._counter = itertools.count(1)

    def latest(self):
        if self.stopped:
            return None
        if self.advancing:
            n = next(self._counter)
            return VideoFrame(self.frame.image, n * 33.0, n)
        return self.frame

    def stop(self):
        self.stopped = True


class FakeOpener:
    """
    Stream opener scripted per tier name. A CaptureError value makes that
    tier fail; anything else (or a missing entry) opens a FakeStream.
    """

    def __init__(self, outcomes=None, stream_factory=FakeStream):
        self.outcomes = outcomes or {}
        self.stream_factory = stream_factory
        self.calls = []
        self.streams = []

    def __call__(self, tier):
        self.calls.append(tier.name)
        outcome = self.outcomes.get(tier.name)
        if isinstance(outcome, Exception):
            raise outcome
        stream = outcome if isinstance(outcome, VideoStream) else self.stream_factory()
        self.streams.append(stream)
        return stream


class FakeDetector:
    """Landmark detector returning a scripted result and counting calls."""

    def __init__(self, result=None):
        self.result = result
        self.calls = []
        self.started = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def detect(self, frame, timestamp_ms):
        self.calls.append(timestamp_ms)
        return self.result

    def get_frame_with_landmarks(self, landmarks=None, mirror=True):
        return None


TIERS = [
    CaptureTier(name="A", device_id=0, width=640, height=480),
    CaptureTier(name="B", device_id=0),
]


@pytest.fixture
def opener():
    return FakeOpener()


@pytest.fixture
def acquisition(opener):
    return CameraAcquisition(TIERS, opener, warmup_timeout=0.05)


@pytest.fixture
def detector():
    return FakeDetector()
