"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for the backoff executor and logging.
Supports .env files and nested configuration.

Example:
    >>> from backoffkit.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_attempts
    6
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # BACKOFFKIT_RETRY_MAX_ATTEMPTS=3
    # BACKOFFKIT_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Default backoff configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BACKOFFKIT_RETRY_",
        extra="ignore",
    )

    max_attempts: PositiveInt = Field(default=6, description="Total attempts including the first")
    delay: NonNegativeFloat = Field(default=0.02, description="Initial delay in seconds")
    delay_factor: NonNegativeFloat = Field(default=4.0, description="Exponential growth factor")
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    strategy: Literal["exponential", "linear"] = "exponential"

    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BACKOFFKIT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class BackoffkitSettings(BaseSettings):
    """Root settings for backoffkit.

    Loads configuration from environment variables with BACKOFFKIT_ prefix.

    Example environment variables:
        BACKOFFKIT_RETRY_MAX_ATTEMPTS=3
        BACKOFFKIT_RETRY_STRATEGY=linear
        BACKOFFKIT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="BACKOFFKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> BackoffkitSettings:
    """Get the global settings instance (cached)."""
    return BackoffkitSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
