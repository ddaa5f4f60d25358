"""
Configuration settings for the adaptive tutor engine.

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
    # Generative Model
    # ========================================
    ai_model: str = Field(
        default="gpt-4o-mini",
        description="Model name sent with every chat completion request",
    )

    # ========================================
    # Response Cache
    # ========================================
    cache_ttl_seconds: float = Field(
        default=30 * 60,
        description="Seconds a cached model response stays valid",
    )
    cache_max_entries: int = Field(
        default=200,
        description="Maximum cached responses before the oldest is evicted",
    )
    cache_key_max_chars: int = Field(
        default=100,
        description="Characters of serialized params that contribute to a cache key",
    )

    # ========================================
    # Rate Limiting & Retry
    # ========================================
    rate_limit_min_delay_ms: int = Field(
        default=1000,
        description="Minimum spacing between outbound model calls (ms)",
    )
    retry_max_attempts: int = Field(
        default=2,
        description="Attempts per model call before giving up",
    )
    retry_base_delay_seconds: float = Field(
        default=1.0,
        description="Backoff base; retry n waits base * 2**n seconds (2s, 4s)",
    )
    retry_jitter: float = Field(
        default=0.25,
        description="Random +/- fraction applied to each backoff delay",
    )

    # ========================================
    # Lesson Plans
    # ========================================
    default_lesson_count: int = Field(
        default=8,
        description="Lesson count used when structure analysis fails",
    )
    min_plan_lessons: int = Field(
        default=3,
        description="Fewest lessons accepted from a generated plan",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    @property
    def rate_limit_min_delay_seconds(self) -> float:
        """Rate limit spacing in seconds."""
        return self.rate_limit_min_delay_ms / 1000.0

    def get_retry_config(self) -> dict[str, float | int]:
        """Get retry configuration as a dictionary."""
        return {
            "attempts": self.retry_max_attempts,
            "base_delay": self.retry_base_delay_seconds,
            "jitter": self.retry_jitter,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
