"""
HandSignal Monitor

PyQt5 window that visualizes the published hand data.
"""
from .monitor_window import MonitorWindow, PointerCanvas

__all__ = [
    'MonitorWindow',
    'PointerCanvas',
]
