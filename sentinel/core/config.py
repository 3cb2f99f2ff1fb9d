# Standard library imports
import os
from typing import Final, List, Optional

# Local application imports
from ..domain.constants.monitoring_constants import ANALYZER_TIMEOUT_SECONDS


class Settings:
    """
    Application settings loaded from environment variables.

    This class centralizes all configuration settings for the application.
    All settings are loaded from environment variables with sensible defaults.
    Behavioral constants of the monitor (sampling cadence, cooldown length)
    are not settings; see domain.constants.monitoring_constants.
    """

    def __init__(self) -> None:
        # Vision Language Model Configuration
        self.groq_api_key: Final[str] = os.getenv("GROQ_API_KEY", "")
        self.vlm_model: Final[str] = os.getenv(
            "VLM_MODEL",
            "meta-llama/llama-4-scout-17b-16e-instruct"
        )
        self.groq_chat_url: Final[str] = os.getenv(
            "GROQ_CHAT_URL",
            "https://api.groq.com/openai/v1/chat/completions"
        )
        # Seconds per analyzer call; 0 disables the timeout
        self.analyzer_timeout_seconds: Final[float] = float(
            os.getenv("ANALYZER_TIMEOUT_SECONDS", str(ANALYZER_TIMEOUT_SECONDS))
        )

        # Camera Configuration
        self.camera_index: Final[int] = int(os.getenv("CAMERA_INDEX", "0"))

        # Logging / HTTP
        self.log_level: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins: Final[List[str]] = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:5173,http://localhost:3000"
            ).split(",")
            if origin.strip()
        ]


# Global settings instance (singleton pattern)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings (singleton pattern)

    Returns:
        Settings instance with all configuration values
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
