"""
Configuration settings for the skilltree progression engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///skilltree.db",
        description="SQLAlchemy connection string for the progress store",
    )

    # ========================================
    # AI Content Generation
    # ========================================
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key for deck, exam and path generation",
    )
    ai_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for generation",
    )
    ai_temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for generation calls",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (rotated at 10 MB)",
    )

    # ========================================
    # Progression Rules
    # ========================================
    deck_size: int = Field(default=30, ge=1, description="Flashcards generated per node")
    exam_size: int = Field(default=15, ge=1, description="Questions generated per exam")
    extension_size: int = Field(
        default=5, ge=1, description="Nodes appended when a path is extended"
    )
    mastery_threshold: int = Field(
        default=20, ge=1, description="Mastered cards required to unlock a node's exam"
    )
    pass_threshold: float = Field(
        default=40.0,
        ge=0.0,
        le=100.0,
        description="Exam percentage required to complete a node",
    )
    review_fallback_sample: int = Field(
        default=10,
        ge=1,
        description="Cards sampled when a 'new' session has nothing due",
    )

    # ========================================
    # Rewards
    # ========================================
    daily_reward_amount: int = Field(
        default=5, ge=0, description="Diamonds granted for the first session of a day"
    )

    # ========================================
    # CLI
    # ========================================
    default_learner_id: str = Field(
        default="local",
        description="Learner id used by the terminal front-end",
    )

    def has_ai_configured(self) -> bool:
        """Check if a generation backend is configured."""
        return bool(self.gemini_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
