from abc import ABC, abstractmethod

from ..models.detection import AnalysisVerdict


class FrameAnalyzer(ABC):
    """Interface - classifies driver drowsiness in a single compressed still"""

    @abstractmethod
    async def analyze(self, image: bytes) -> AnalysisVerdict:
        """
        Analyze one JPEG still.

        Raises:
            AnalyzerError: If the verdict cannot be produced
        """
        pass
