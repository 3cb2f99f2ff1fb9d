# Standard library imports
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, TYPE_CHECKING

# Local application imports
from ..constants.monitoring_constants import ANALYSIS_FAILED_REASON
from ..constants.verdict_fields import VerdictFields

if TYPE_CHECKING:
    from ..contracts.camera import CameraHandle


class DetectionState(str, Enum):
    """Mutually exclusive states of a monitoring session"""
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    ALERT = "ALERT"
    ERROR = "ERROR"

    @property
    def is_active(self) -> bool:
        return self in (DetectionState.SCANNING, DetectionState.ALERT)


@dataclass(frozen=True)
class AnalysisVerdict:
    """
    Drowsiness judgment for a single sample.

    Produced once per sample by the frame analyzer and never mutated afterwards.
    """
    is_drowsy: bool
    reason: str
    confidence: float
    detected_signs: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Business validations"""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")
        # Accept any sequence but store an immutable tuple
        if not isinstance(self.detected_signs, tuple):
            object.__setattr__(self, "detected_signs", tuple(self.detected_signs))

    @classmethod
    def analysis_failed(cls) -> "AnalysisVerdict":
        """Fail-open verdict used whenever the analyzer cannot produce one."""
        return cls(is_drowsy=False, reason=ANALYSIS_FAILED_REASON, confidence=0.0, detected_signs=())

    @classmethod
    def from_signs(
        cls,
        is_drowsy: bool,
        reason: str,
        confidence: float,
        detected_signs: Sequence[str],
    ) -> "AnalysisVerdict":
        return cls(
            is_drowsy=bool(is_drowsy),
            reason=str(reason),
            confidence=float(confidence),
            detected_signs=tuple(str(sign) for sign in detected_signs),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            VerdictFields.IS_DROWSY: self.is_drowsy,
            VerdictFields.REASON: self.reason,
            VerdictFields.CONFIDENCE: self.confidence,
            VerdictFields.DETECTED_SIGNS: list(self.detected_signs),
        }


@dataclass
class Session:
    """
    Mutable state of one monitoring instance.

    camera_handle is held only while SCANNING or ALERT.
    cooldown_remaining is meaningful only while ALERT and is 0 otherwise.
    """
    state: DetectionState = DetectionState.IDLE
    camera_handle: Optional["CameraHandle"] = None
    last_verdict: Optional[AnalysisVerdict] = None
    cooldown_remaining: int = 0
    error_message: Optional[str] = None


@dataclass(frozen=True)
class MonitoringSnapshot:
    """Read-only view of a session handed to the presentation layer"""
    state: DetectionState
    is_active: bool
    last_verdict: Optional[AnalysisVerdict] = None
    cooldown_remaining: int = 0
    error_message: Optional[str] = None

    @classmethod
    def of(cls, session: Session) -> "MonitoringSnapshot":
        return cls(
            state=session.state,
            is_active=session.state.is_active,
            last_verdict=session.last_verdict,
            cooldown_remaining=session.cooldown_remaining,
            error_message=session.error_message,
        )
