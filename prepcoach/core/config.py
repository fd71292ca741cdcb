"""
PrepCoach - Configuration Management.

Uses pydantic-settings for environment variable loading with validation.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Text Provider
    # -------------------------------------------------------------------------
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"
    AI_RATE_LIMIT: str = "30/hour"

    # -------------------------------------------------------------------------
    # Speech Analysis
    # -------------------------------------------------------------------------
    DEFAULT_ANSWER_DURATION_SECONDS: float = 60.0

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------
    HISTORY_WINDOW_DAYS: int = 30
    TARGET_READINESS_SCORE: int = 85

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------
    PERSISTENCE_BACKEND: Literal["memory", "json"] = "memory"
    DATA_FILE: str = "data/prepcoach.json"

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    DEBUG_MODE: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging() -> None:
    """Configure application logging based on settings."""
    settings = get_settings()

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=log_format,
        datefmt=date_format,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
