"""
HandSignal

Hand landmark tracking with MediaPipe, turned into a debounced gesture
signal and a pointer position.
"""
from .config import Config, CaptureTier, load_config
from .errors import (
    CaptureError,
    CaptureErrorKind,
    HandSignalError,
    InitializationError,
    TransientFrameError,
)
from .hand_tracker import HandTracker, HandLandmarks
from .gesture_classifier import GestureClassifier, Gesture
from .gesture_stabilizer import GestureStabilizer
from .publisher import HandData, HandDataPublisher
from .camera import CameraAcquisition, CaptureSession, CaptureStatus
from .scheduler import FrameScheduler
from .pipeline import HandPipeline

__all__ = [
    'Config',
    'CaptureTier',
    'load_config',
    'CaptureError',
    'CaptureErrorKind',
    'HandSignalError',
    'InitializationError',
    'TransientFrameError',
    'HandTracker',
    'HandLandmarks',
    'GestureClassifier',
    'Gesture',
    'GestureStabilizer',
    'HandData',
    'HandDataPublisher',
    'CameraAcquisition',
    'CaptureSession',
    'CaptureStatus',
    'FrameScheduler',
    'HandPipeline',
]
