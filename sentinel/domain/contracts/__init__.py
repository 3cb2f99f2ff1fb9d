"""Ports consumed by the monitoring core"""

from .audio_alert import AudioAlert
from .camera import CameraConstraints, CameraHandle, CameraSource
from .frame_analyzer import FrameAnalyzer

__all__ = [
    "AudioAlert",
    "CameraConstraints",
    "CameraHandle",
    "CameraSource",
    "FrameAnalyzer",
]
