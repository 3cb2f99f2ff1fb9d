from .start_monitoring import StartMonitoringUseCase
from .stop_monitoring import StopMonitoringUseCase
from .get_monitoring_status import GetMonitoringStatusUseCase

__all__ = [
    "StartMonitoringUseCase",
    "StopMonitoringUseCase",
    "GetMonitoringStatusUseCase",
]
