import numpy as np
import pytest

from handsignal.camera import CameraAcquisition, CaptureStatus, VideoFrame
from handsignal.errors import CaptureError, CaptureErrorKind

from conftest import TIERS, FakeOpener, FakeStream


def record_status(acquisition):
    events = []
    acquisition.on_status_change(lambda status, message: events.append((status, message)))
    return events


def test_first_tier_success_stops_search(acquisition, opener):
    session = acquisition.acquire()

    assert opener.calls == ["A"]
    assert session.tier.name == "A"
    assert session.is_active
    assert acquisition.status == CaptureStatus.ACTIVE


def test_falls_back_to_next_tier():
    opener = FakeOpener({"A": CaptureError(CaptureErrorKind.PERMISSION_DENIED)})
    acquisition = CameraAcquisition(TIERS, opener, warmup_timeout=0.05)
    events = record_status(acquisition)

    session = acquisition.acquire()

    assert opener.calls == ["A", "B"]
    assert session.tier.name == "B"
    assert [status for status, _ in events] == [CaptureStatus.REQUESTING, CaptureStatus.ACTIVE]


def test_all_tiers_fail_reports_last_kind():
    opener = FakeOpener({
        "A": CaptureError(CaptureErrorKind.PERMISSION_DENIED, tier="A"),
        "B": CaptureError(CaptureErrorKind.DEVICE_BUSY, tier="B"),
    })
    acquisition = CameraAcquisition(TIERS, opener, warmup_timeout=0.05)
    events = record_status(acquisition)

    with pytest.raises(CaptureError) as excinfo:
        acquisition.acquire()

    assert excinfo.value.kind == CaptureErrorKind.DEVICE_BUSY
    assert excinfo.value.tier == "B"
    assert acquisition.status == CaptureStatus.ERROR
    assert acquisition.session is None
    assert events[-1] == (CaptureStatus.ERROR, "Camera is in use by another application")


def test_unexpected_opener_exception_is_unknown():
    opener = FakeOpener({"A": OSError("boom"), "B": OSError("still boom")})
    acquisition = CameraAcquisition(TIERS, opener, warmup_timeout=0.05)

    with pytest.raises(CaptureError) as excinfo:
        acquisition.acquire()

    assert excinfo.value.kind == CaptureErrorKind.UNKNOWN
    assert "still boom" in excinfo.value.message


def test_stream_without_frames_falls_through():
    empty = VideoFrame(np.zeros((0, 0, 3), dtype=np.uint8), 0.0, 0)
    silent = FakeStream(frame=empty)
    opener = FakeOpener({"A": silent})
    acquisition = CameraAcquisition(TIERS, opener, warmup_timeout=0.02)

    session = acquisition.acquire()

    assert silent.stopped
    assert session.tier.name == "B"


def test_acquire_replaces_previous_session(acquisition, opener):
    first = acquisition.acquire()
    second = acquisition.acquire()

    assert first.stream.stopped
    assert not second.stream.stopped
    assert acquisition.session is second


def test_release_is_idempotent(acquisition):
    events = record_status(acquisition)

    acquisition.release()
    assert events == []

    session = acquisition.acquire()
    acquisition.release()
    acquisition.release()

    assert session.stream.stopped
    assert acquisition.session is None
    assert acquisition.status == CaptureStatus.IDLE
    assert [status for status, _ in events] == [
        CaptureStatus.REQUESTING, CaptureStatus.ACTIVE, CaptureStatus.IDLE,
    ]


def test_release_after_error_is_noop():
    opener = FakeOpener({
        "A": CaptureError(CaptureErrorKind.NOT_FOUND),
        "B": CaptureError(CaptureErrorKind.NOT_FOUND),
    })
    acquisition = CameraAcquisition(TIERS, opener, warmup_timeout=0.05)
    with pytest.raises(CaptureError):
        acquisition.acquire()

    acquisition.release()

    assert acquisition.status == CaptureStatus.ERROR


def test_error_message_includes_detail():
    error = CaptureError(CaptureErrorKind.NOT_FOUND, "device 3")
    assert error.message == "No camera device found: device 3"
    assert str(error) == error.message


def test_fail_releases_and_reports_error(acquisition):
    session = acquisition.acquire()
    events = record_status(acquisition)

    acquisition.fail("Model file not found")

    assert session.stream.stopped
    assert acquisition.session is None
    assert acquisition.status == CaptureStatus.ERROR
    assert acquisition.message == "Model file not found"
    assert events == [(CaptureStatus.IDLE, None), (CaptureStatus.ERROR, "Model file not found")]
