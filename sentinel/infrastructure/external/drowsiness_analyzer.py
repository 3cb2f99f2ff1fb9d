"""
Drowsiness Analyzer
-------------------

Frame analyzer backed by the Groq VLM.

We send one JPEG still of the driver plus a fixed instruction describing the
four drowsiness criteria, ask for a JSON object, and validate the reply into
an AnalysisVerdict. Anything malformed raises AnalyzerError; the monitoring
core turns that into the fail-open verdict.
"""

import logging
from typing import List

from pydantic import BaseModel, Field, ValidationError

from ...domain.contracts.frame_analyzer import FrameAnalyzer
from ...domain.exceptions import AnalyzerError
from ...domain.models.detection import AnalysisVerdict
from .groq_vlm_service import GroqVLMService

logger = logging.getLogger(__name__)


def build_system_instruction() -> str:
    """System prompt: role, the four criteria, and the strict JSON shape."""
    return """You are a highly accurate drowsiness detection system for vehicle safety.
Analyze the provided image of a driver's face and decide whether they show signs of drowsiness.

Drowsiness criteria:
1. Yawning (mouth open wide).
2. Rubbing eyes (hands touching or covering the eyes).
3. Eyes closed (both eyes closed; assume the captured frame is representative of a prolonged closure).
4. Head facing downward (nodding off, chin near the chest).

Respond ONLY with a valid JSON object in this exact format:
{
    "isDrowsy": true or false,
    "reason": "Short description of the detected state, e.g. 'Driver is yawning'",
    "confidence": 0.0 to 1.0,
    "detectedSigns": ["yawning", "rubbing_eyes", "eyes_closed", "head_down"]
}

Set isDrowsy to true if any criterion is met. detectedSigns lists only the signs you actually see."""


def build_user_prompt() -> str:
    return "Analyze the driver's state. Are they drowsy based on: yawning, rubbing eyes, eyes closed, or head down?"


class VerdictPayload(BaseModel):
    """Expected VLM reply. All four fields are mandatory."""
    isDrowsy: bool
    reason: str
    confidence: float = Field(allow_inf_nan=False)
    detectedSigns: List[str]


class GroqDrowsinessAnalyzer(FrameAnalyzer):
    """FrameAnalyzer implementation that asks the Groq VLM for a verdict"""

    def __init__(self, vlm_service: GroqVLMService, temperature: float = 0.1, max_tokens: int = 300):
        self.vlm_service = vlm_service
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def analyze(self, image: bytes) -> AnalysisVerdict:
        if not image:
            raise AnalyzerError("Empty image")

        vlm_result = await self.vlm_service.analyze_image(
            image,
            prompt=build_user_prompt(),
            system_prompt=build_system_instruction(),
            json_mode=True,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if vlm_result.get("error"):
            raise AnalyzerError(vlm_result["error"])

        parsed = vlm_result.get("parsed_json")
        # VLM may wrap the object in a list
        if isinstance(parsed, list) and len(parsed) > 0:
            parsed = parsed[0]
        if not isinstance(parsed, dict):
            raw_content = vlm_result.get("content") or ""
            raise AnalyzerError(f"VLM reply is not a JSON object: {raw_content[:200]!r}")

        try:
            payload = VerdictPayload.model_validate(parsed)
        except ValidationError as e:
            raise AnalyzerError(f"Malformed verdict: {e.error_count()} invalid field(s)") from e

        confidence = max(0.0, min(1.0, payload.confidence))
        verdict = AnalysisVerdict.from_signs(
            is_drowsy=payload.isDrowsy,
            reason=payload.reason,
            confidence=confidence,
            detected_signs=payload.detectedSigns,
        )
        logger.debug(
            f"Verdict: is_drowsy={verdict.is_drowsy} confidence={verdict.confidence:.2f} "
            f"signs={list(verdict.detected_signs)}"
        )
        return verdict
