"""Audio infrastructure"""

from .alarm_emitter import AudioAlertEmitter, build_alarm_pattern

__all__ = [
    "AudioAlertEmitter",
    "build_alarm_pattern",
]
