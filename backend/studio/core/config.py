"""
Configuration settings for the Dodge & Burn Studio backend.

Uses Pydantic BaseSettings for environment variable management with sensible defaults.
"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from studio.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI Adapter configuration
    AI_ADAPTER_TYPE: str = "gemini"  # "gemini" or "mock"
    ADAPTER_LOG_DIR: Optional[Path] = None

    # Gemini-specific configuration
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_IMAGE_MODEL: str = "gemini-2.5-flash-image"
    GEMINI_TEXT_MODEL: str = "gemini-2.5-flash"

    # Language of the palette names/roles produced by the model
    PALETTE_LANGUAGE: str = "Italian"

    # Message catalog for user-facing errors ("it" or "en")
    UI_LANGUAGE: str = "it"

    # Upload constraints
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024
    ALLOWED_MIME_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp"]

    # Palette extraction
    DEFAULT_PALETTE_SIZE: int = 8
    MIN_PALETTE_SIZE: int = 4
    MAX_PALETTE_SIZE: int = 16

    # Live preview handles across all sessions
    MAX_PREVIEW_HANDLES: int = 64

    # Sessions untouched for this long are reset and forgotten
    SESSION_TTL_SECONDS: float = 30 * 60

    # In-memory adapter call log keeps only the most recent entries
    MAX_CALL_LOG_ENTRIES: int = 200

    def require_api_key(self) -> Optional[str]:
        """
        Return the Gemini API key, failing when the Gemini adapter needs one.

        Raises:
            ConfigurationError: if the key is missing and AI_ADAPTER_TYPE is "gemini"
        """
        if self.AI_ADAPTER_TYPE == "gemini" and not self.GEMINI_API_KEY:
            raise ConfigurationError(
                "GEMINI_API_KEY environment variable not set"
            )
        return self.GEMINI_API_KEY


# Global settings instance
settings = Settings()
