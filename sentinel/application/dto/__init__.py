from .monitoring_dto import MonitoringStatusResponse, VerdictResponse

__all__ = [
    "MonitoringStatusResponse",
    "VerdictResponse",
]
