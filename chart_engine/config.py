"""
Runtime settings.

Read from the environment and from a .env file at the project root.
Uses pydantic-settings, so malformed values fail loudly at startup.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]
ENV_FILE = BASE_DIR / ".env"


class GeminiSettings(BaseSettings):
    """Gemini API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    api_key: str = Field(default="", description="Gemini API key")
    model: str = Field(default="gemini-2.5-flash", description="Model used for recommendations")


class Settings(BaseSettings):
    """chartmate settings (CHARTMATE_* variables)."""

    model_config = SettingsConfigDict(
        env_prefix="CHARTMATE_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Rows of the dataset sent to the recommender
    sample_rows: int = Field(default=100, ge=1)
    # Reject unknown aggregations instead of degrading to count
    strict_aggregation: bool = False
    log_level: str = "INFO"
    png_scale: int = Field(default=2, ge=1)

    gemini: GeminiSettings = Field(default_factory=GeminiSettings)


def load_settings() -> Settings:
    return Settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
