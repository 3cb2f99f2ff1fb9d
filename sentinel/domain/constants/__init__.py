"""Constants for the monitoring domain"""

from .verdict_fields import VerdictFields
from . import monitoring_constants

__all__ = [
    "VerdictFields",
    "monitoring_constants",
]
