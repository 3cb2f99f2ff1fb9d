from .monitoring import (
    StartMonitoringUseCase,
    StopMonitoringUseCase,
    GetMonitoringStatusUseCase,
)

__all__ = [
    "StartMonitoringUseCase",
    "StopMonitoringUseCase",
    "GetMonitoringStatusUseCase",
]
