from abc import ABC, abstractmethod


class AudioAlert(ABC):
    """Interface - bounded, non-overlapping audible alarm"""

    @abstractmethod
    def start(self) -> None:
        """Begin the alarm pattern. No-op while already playing. Never raises."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Silence immediately and release playback resources. Safe when idle."""
        pass

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        pass
