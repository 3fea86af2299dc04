"""
Exception types for the hand signal pipeline.
"""
from enum import Enum
from typing import Optional


class HandSignalError(Exception):
    """Base class for all pipeline errors."""


class InitializationError(HandSignalError):
    """The landmark inference engine could not be loaded. Fatal."""


class CaptureErrorKind(str, Enum):
    """Why a capture device could not be opened."""
    PERMISSION_DENIED = "PermissionDenied"
    NOT_FOUND = "NotFound"
    DEVICE_BUSY = "DeviceBusy"
    UNKNOWN = "Unknown"


# User facing text for each failure kind
CAPTURE_ERROR_MESSAGES = {
    CaptureErrorKind.PERMISSION_DENIED: "Camera permission denied",
    CaptureErrorKind.NOT_FOUND: "No camera device found",
    CaptureErrorKind.DEVICE_BUSY: "Camera is in use by another application",
    CaptureErrorKind.UNKNOWN: "Camera error",
}


class CaptureError(HandSignalError):
    """
    A capture device could not be acquired.

    Attributes:
        kind: Failure classification
        detail: Low-level description from the driver, if any
        tier: Name of the tier that produced this failure
    """

    def __init__(
        self,
        kind: CaptureErrorKind,
        detail: Optional[str] = None,
        tier: Optional[str] = None,
    ):
        self.kind = kind
        self.detail = detail
        self.tier = tier
        super().__init__(self.message)

    @property
    def message(self) -> str:
        text = CAPTURE_ERROR_MESSAGES[self.kind]
        if self.detail:
            text = f"{text}: {self.detail}"
        return text


class TransientFrameError(HandSignalError):
    """No usable new frame this tick (stale, empty or no session). Never surfaced."""
