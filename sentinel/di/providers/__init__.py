from .monitoring_provider import MonitoringProvider


__all__ = [
    "MonitoringProvider",
]
