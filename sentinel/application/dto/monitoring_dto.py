from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...domain.constants.monitoring_constants import DEFAULT_ALERT_REASON
from ...domain.models.detection import AnalysisVerdict, DetectionState, MonitoringSnapshot


STATUS_TEXTS = {
    DetectionState.IDLE: "Waiting for activation...",
    DetectionState.ALERT: "WAKE UP",
    DetectionState.ERROR: "Camera Error",
}


class VerdictResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_drowsy: bool = Field(alias="isDrowsy")
    reason: str
    confidence: float
    detected_signs: List[str] = Field(default_factory=list, alias="detectedSigns")

    @classmethod
    def from_verdict(cls, verdict: AnalysisVerdict) -> "VerdictResponse":
        return cls(
            is_drowsy=verdict.is_drowsy,
            reason=verdict.reason,
            confidence=verdict.confidence,
            detected_signs=list(verdict.detected_signs),
        )


class MonitoringStatusResponse(BaseModel):
    """Observable outputs of the monitor, serialized with camelCase keys"""
    model_config = ConfigDict(populate_by_name=True)

    state: DetectionState
    is_active: bool = Field(alias="isActive")
    last_verdict: Optional[VerdictResponse] = Field(default=None, alias="lastVerdict")
    cooldown_remaining: int = Field(default=0, alias="cooldownRemaining")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    status_text: str = Field(alias="statusText")
    alert_reason: Optional[str] = Field(default=None, alias="alertReason")

    @classmethod
    def from_snapshot(cls, snapshot: MonitoringSnapshot) -> "MonitoringStatusResponse":
        verdict = snapshot.last_verdict
        if snapshot.state is DetectionState.SCANNING:
            status_text = "Monitoring Driver" if verdict else "Initializing..."
        else:
            status_text = STATUS_TEXTS[snapshot.state]

        alert_reason = None
        if snapshot.state is DetectionState.ALERT:
            alert_reason = (verdict.reason if verdict else "") or DEFAULT_ALERT_REASON

        return cls(
            state=snapshot.state,
            is_active=snapshot.is_active,
            last_verdict=VerdictResponse.from_verdict(verdict) if verdict else None,
            cooldown_remaining=snapshot.cooldown_remaining,
            error_message=snapshot.error_message,
            status_text=status_text,
            alert_reason=alert_reason,
        )

    def to_message(self) -> dict:
        """JSON-ready dict for WebSocket pushes"""
        return self.model_dump(mode="json", by_alias=True)
