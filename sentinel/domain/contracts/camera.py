from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..constants.monitoring_constants import (
    FACING_MODE_USER,
    IDEAL_CAPTURE_HEIGHT,
    IDEAL_CAPTURE_WIDTH,
)


@dataclass(frozen=True)
class CameraConstraints:
    """Negotiated capture constraints requested when opening the camera"""
    facing_mode: str = FACING_MODE_USER
    ideal_width: int = IDEAL_CAPTURE_WIDTH
    ideal_height: int = IDEAL_CAPTURE_HEIGHT


class CameraHandle(ABC):
    """An opened camera, exclusively owned by one monitoring session"""

    @abstractmethod
    def capture_still(self, quality: int) -> Optional[bytes]:
        """Return the current frame as JPEG bytes, or None when no frame is available"""
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the device. Must be safe to call more than once."""
        pass


class CameraSource(ABC):
    """Interface - defines the contract for acquiring a camera"""

    @abstractmethod
    async def acquire(self, constraints: CameraConstraints) -> CameraHandle:
        """
        Open the camera.

        Raises:
            CameraAcquisitionError: If the device is missing or access is denied
        """
        pass
