"""External service clients (vision language model)"""

from .groq_vlm_service import GroqVLMService
from .drowsiness_analyzer import GroqDrowsinessAnalyzer

__all__ = [
    "GroqVLMService",
    "GroqDrowsinessAnalyzer",
]
