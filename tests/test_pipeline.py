import pytest

from handsignal.camera import CameraAcquisition, CaptureStatus
from handsignal.config import Config
from handsignal.errors import CaptureError, CaptureErrorKind, InitializationError
from handsignal.gesture_classifier import Gesture
from handsignal.pipeline import HandPipeline

from conftest import TIERS, FakeDetector, FakeOpener, FakeStream


class FailingDetector(FakeDetector):
    def start(self):
        raise InitializationError("Model file not found: missing.task")


def advancing_stream():
    return FakeStream(advancing=True)


@pytest.fixture
def opener():
    return FakeOpener(stream_factory=advancing_stream)


@pytest.fixture
def pipeline(acquisition, detector):
    config = Config()
    config.scheduler.tick_rate = 1000
    return HandPipeline(config, tracker=detector, acquisition=acquisition)


def test_start_acquires_and_enables(pipeline, detector, opener):
    statuses = []
    pipeline.on_status_change(lambda status, message: statuses.append(status))

    assert pipeline.start() is True

    assert detector.started
    assert pipeline.is_enabled
    assert opener.calls == ["A"]
    assert statuses == [CaptureStatus.REQUESTING, CaptureStatus.ACTIVE]


def test_tick_publishes_hand_data(pipeline):
    received = []
    pipeline.on_hand_data(received.append)
    pipeline.start()

    pipeline.tick()
    pipeline.tick()

    assert len(received) == 2
    assert all(d.gesture == Gesture.NONE and not d.detected for d in received)


def test_stop_releases_camera(pipeline, acquisition, opener):
    pipeline.start()
    pipeline.stop()

    assert not pipeline.is_enabled
    assert acquisition.session is None
    assert opener.streams[0].stopped
    assert pipeline.tick() is False


def test_run_returns_after_stop(pipeline, acquisition):
    received = []

    def handler(data):
        received.append(data)
        if len(received) == 4:
            pipeline.stop()

    pipeline.on_hand_data(handler)
    pipeline.start()
    pipeline.run()

    assert len(received) == 4
    assert acquisition.session is None
    assert pipeline.status == CaptureStatus.IDLE


def test_restart_reacquires_and_resets(pipeline, opener):
    pipeline.start()
    pipeline.tick()
    pipeline.stop()

    assert pipeline.start() is True

    assert opener.calls == ["A", "A"]
    assert opener.streams[0].stopped
    assert not opener.streams[1].stopped
    assert pipeline.scheduler.stabilizer.history == ()


def test_capture_error_leaves_pipeline_disabled(detector):
    opener = FakeOpener({
        "A": CaptureError(CaptureErrorKind.PERMISSION_DENIED),
        "B": CaptureError(CaptureErrorKind.PERMISSION_DENIED),
    })
    acquisition = CameraAcquisition(TIERS, opener, warmup_timeout=0.05)
    pipeline = HandPipeline(Config(), tracker=detector, acquisition=acquisition)
    messages = []
    pipeline.on_status_change(lambda status, message: messages.append((status, message)))

    assert pipeline.start() is False

    assert not pipeline.is_enabled
    assert messages[-1] == (CaptureStatus.ERROR, "Camera permission denied")
    assert pipeline.tick() is False


def test_initialization_error_is_fatal(acquisition, opener):
    pipeline = HandPipeline(Config(), tracker=FailingDetector(), acquisition=acquisition)
    messages = []
    pipeline.on_status_change(lambda status, message: messages.append((status, message)))

    with pytest.raises(InitializationError):
        pipeline.start()

    assert opener.calls == []
    assert not pipeline.is_enabled
    assert messages == [(CaptureStatus.ERROR, "Model file not found: missing.task")]
    assert pipeline.status == CaptureStatus.ERROR


def test_close_stops_tracker(pipeline, detector, acquisition):
    pipeline.start()
    pipeline.close()

    assert not detector.started
    assert acquisition.session is None
