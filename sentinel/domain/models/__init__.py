from .detection import (
    AnalysisVerdict,
    DetectionState,
    MonitoringSnapshot,
    Session,
)

__all__ = [
    "AnalysisVerdict",
    "DetectionState",
    "MonitoringSnapshot",
    "Session",
]
