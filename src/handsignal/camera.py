"""
Camera acquisition with tiered fallback.

Opens a capture device by trying an ordered list of CaptureTiers, each more
permissive than the last, and keeps the latest frame available to the
frame scheduler through a background capture thread.
"""
from dataclasses import dataclass
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence
import logging
import os
import sys
import threading
import time

import cv2
import numpy as np

from .config import CameraConfig, CaptureTier, default_tiers
from .errors import CaptureError, CaptureErrorKind

logger = logging.getLogger(__name__)


class CaptureStatus(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    ACTIVE = "active"
    ERROR = "error"


@dataclass
class VideoFrame:
    """One captured frame."""
    image: np.ndarray       # BGR image data
    timestamp_ms: float     # Capture time since the stream opened
    frame_id: int

    @property
    def is_empty(self) -> bool:
        return self.image is None or self.image.size == 0


class VideoStream:
    """Live frame source returned by a stream opener."""

    def latest(self) -> Optional[VideoFrame]:
        """Most recent frame, or None if nothing has arrived yet."""
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class OpenCVStream(VideoStream):
    """
    cv2.VideoCapture reader running in a daemon thread.
    Only the newest frame is kept; older ones are dropped.

    The capture thread owns the device: it is the only caller of read()
    and releases the device once its loop exits.
    """

    JOIN_TIMEOUT = 1.0

    def __init__(self, cap: cv2.VideoCapture, device_id: int):
        self.device_id = device_id
        self._cap = cap
        self._lock = threading.Lock()
        self._latest: Optional[VideoFrame] = None
        self._frame_count = 0
        self._start_perf = time.perf_counter()
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()

    def _capture_loop(self):
        try:
            while self._running and self._cap.isOpened():
                ret, image = self._cap.read()
                if not ret:
                    time.sleep(0.005)
                    continue

                self._frame_count += 1
                frame = VideoFrame(
                    image=image,
                    timestamp_ms=(time.perf_counter() - self._start_perf) * 1000,
                    frame_id=self._frame_count,
                )
                with self._lock:
                    if self._running:
                        self._latest = frame
        finally:
            self._cap.release()
            logger.debug("Released camera %d", self.device_id)

    def latest(self) -> Optional[VideoFrame]:
        with self._lock:
            return self._latest

    def stop(self) -> None:
        """
        Ask the capture thread to exit and wait for it. A read() blocked on
        a silent device may outlast the join; the thread then releases the
        device when that read returns.
        """
        self._running = False
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=self.JOIN_TIMEOUT)
            if self._thread.is_alive():
                logger.warning("Camera %d capture thread still blocked in read()", self.device_id)
        with self._lock:
            self._latest = None

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()


def wait_for_first_frame(stream: VideoStream, timeout: float) -> bool:
    """Poll until the stream delivers a non-empty frame or timeout expires."""
    deadline = time.monotonic() + timeout
    while True:
        frame = stream.latest()
        if frame is not None and not frame.is_empty:
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(0.01)


def _classify_open_failure(device_id: int) -> CaptureErrorKind:
    """Best guess at why a device index failed to open."""
    if not sys.platform.startswith("linux"):
        return CaptureErrorKind.UNKNOWN

    node = Path(f"/dev/video{device_id}")
    if not node.exists():
        return CaptureErrorKind.NOT_FOUND
    if not os.access(node, os.R_OK | os.W_OK):
        return CaptureErrorKind.PERMISSION_DENIED
    return CaptureErrorKind.DEVICE_BUSY


def _open_device(device_id: int, tier: CaptureTier) -> OpenCVStream:
    try:
        cap = cv2.VideoCapture(device_id)
    except cv2.error as e:
        raise CaptureError(CaptureErrorKind.UNKNOWN, str(e), tier.name) from e

    if not cap.isOpened():
        cap.release()
        kind = _classify_open_failure(device_id)
        raise CaptureError(kind, f"device {device_id}", tier.name)

    if tier.width:
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, tier.width)
    if tier.height:
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, tier.height)
    if tier.fps:
        cap.set(cv2.CAP_PROP_FPS, tier.fps)

    actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
    logger.info("Opened camera %d at %dx%d (tier %s)", device_id, actual_width, actual_height, tier.name)

    return OpenCVStream(cap, device_id)


def open_opencv_stream(
    tier: CaptureTier,
    max_device_index: int = 4,
    warmup_timeout: float = 2.0,
) -> OpenCVStream:
    """
    Open a camera for one tier.

    A tier with device_id None probes indices 0..max_device_index. A probed
    device only counts once it delivers a frame within warmup_timeout, so a
    device that opens but stays silent does not end the scan. If no index
    works, the last probe's failure is raised.
    """
    if tier.device_id is not None:
        return _open_device(tier.device_id, tier)

    last_error: Optional[CaptureError] = None
    for device_id in range(max_device_index + 1):
        try:
            stream = _open_device(device_id, tier)
        except CaptureError as e:
            last_error = e
            continue

        if wait_for_first_frame(stream, warmup_timeout):
            return stream

        stream.stop()
        logger.info("Camera %d opened but sent no frames, trying next index", device_id)
        last_error = CaptureError(
            CaptureErrorKind.DEVICE_BUSY, f"device {device_id}: no frames received", tier.name
        )
    raise last_error or CaptureError(CaptureErrorKind.NOT_FOUND, tier=tier.name)


StreamOpener = Callable[[CaptureTier], VideoStream]
StatusHandler = Callable[[CaptureStatus, Optional[str]], None]


class CaptureSession:
    """The live stream acquired by CameraAcquisition."""

    def __init__(self, stream: VideoStream, tier: CaptureTier):
        self.stream = stream
        self.tier = tier
        self.status = CaptureStatus.REQUESTING

    @property
    def is_active(self) -> bool:
        return self.status == CaptureStatus.ACTIVE

    def current_frame(self) -> Optional[VideoFrame]:
        return self.stream.latest()

    def stop(self) -> None:
        self.stream.stop()
        self.status = CaptureStatus.IDLE


class CameraAcquisition:
    """
    Owns the capture device lifecycle.

    acquire() walks the tiers in order and returns the first session whose
    stream delivers a playable frame. If every tier fails, the error from the
    last tier is raised and reported through the status handlers.
    """

    def __init__(
        self,
        tiers: Optional[Sequence[CaptureTier]] = None,
        request_stream: Optional[StreamOpener] = None,
        warmup_timeout: float = 2.0,
    ):
        self._tiers: List[CaptureTier] = list(tiers) if tiers else default_tiers()
        self._request_stream = request_stream or open_opencv_stream
        self._warmup_timeout = warmup_timeout

        self._status = CaptureStatus.IDLE
        self._message: Optional[str] = None
        self._session: Optional[CaptureSession] = None
        self._handlers: List[StatusHandler] = []

    @classmethod
    def from_config(cls, config: CameraConfig) -> "CameraAcquisition":
        opener = partial(
            open_opencv_stream,
            max_device_index=config.max_device_index,
            warmup_timeout=config.warmup_timeout,
        )
        return cls(config.tiers, opener, config.warmup_timeout)

    def on_status_change(self, handler: StatusHandler) -> None:
        self._handlers.append(handler)

    def _set_status(self, status: CaptureStatus, message: Optional[str] = None) -> None:
        self._status = status
        self._message = message
        for handler in list(self._handlers):
            try:
                handler(status, message)
            except Exception:
                logger.exception("Status handler %r failed", handler)

    def acquire(self) -> CaptureSession:
        """
        Open a new session, tearing down any existing one first.

        Raises:
            CaptureError: if every tier fails; kind is the last tier's.
        """
        self.release()
        self._set_status(CaptureStatus.REQUESTING)

        last_error: Optional[CaptureError] = None
        for tier in self._tiers:
            try:
                session = self._try_tier(tier)
            except CaptureError as e:
                logger.warning("Camera tier %s failed: %s", tier.name, e.message)
                last_error = e
                continue

            self._session = session
            session.status = CaptureStatus.ACTIVE
            self._set_status(CaptureStatus.ACTIVE)
            return session

        error = last_error or CaptureError(CaptureErrorKind.NOT_FOUND, "no capture tiers configured")
        logger.error("All camera attempts failed: %s", error.message)
        self._set_status(CaptureStatus.ERROR, error.message)
        raise error

    def _try_tier(self, tier: CaptureTier) -> CaptureSession:
        try:
            stream = self._request_stream(tier)
        except CaptureError:
            raise
        except Exception as e:
            raise CaptureError(CaptureErrorKind.UNKNOWN, str(e), tier.name) from e

        session = CaptureSession(stream, tier)
        if not wait_for_first_frame(stream, self._warmup_timeout):
            stream.stop()
            raise CaptureError(CaptureErrorKind.DEVICE_BUSY, "no frames received", tier.name)
        return session

    def fail(self, message: str) -> None:
        """Report a failure from outside the camera, such as the model not loading."""
        self.release()
        self._set_status(CaptureStatus.ERROR, message)

    def release(self) -> None:
        """Stop the current session, if any. Safe to call repeatedly."""
        if self._session is None:
            return
        session, self._session = self._session, None
        session.stop()
        self._set_status(CaptureStatus.IDLE)

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def status(self) -> CaptureStatus:
        return self._status

    @property
    def message(self) -> Optional[str]:
        return self._message

    @property
    def tiers(self) -> List[CaptureTier]:
        return list(self._tiers)
