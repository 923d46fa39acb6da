"""Configuration management for the forcebuffer controller.

Loads and validates environment variables using Pydantic settings.
"""

from typing import Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings


class ForceBufferConfig(BaseSettings):
    """Controller and status-service configuration.

    Every field can be overridden with a ``FORCEBUFFER_``-prefixed environment
    variable (e.g. ``FORCEBUFFER_TICK_INTERVAL_MS=500``).
    """

    # Service settings
    env: Literal["development", "production", "test"] = Field(default="development")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8765, ge=1024, le=65535)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    # Control loop timing (milliseconds)
    tick_interval_ms: int = Field(default=1000, ge=1)
    settle_delay_ms: int = Field(default=150, ge=0)
    retry_delay_increment_ms: int = Field(default=50, ge=0)
    recovery_delay_ms: int = Field(default=500, ge=0)
    quality_change_settle_ms: int = Field(default=500, ge=0)

    # Step sizing (seconds)
    short_form_threshold_seconds: float = Field(default=60.0, ge=0.0)
    short_form_step_seconds: float = Field(default=5.0, gt=0.0)
    min_step_seconds: float = Field(default=5.0, gt=0.0)
    max_step_seconds: float = Field(default=60.0, gt=0.0)

    # Budgets and thresholds
    max_attempts: int = Field(default=500, ge=1)
    fault_ceiling: int = Field(default=10, ge=1)
    throughput_sample_window: int = Field(default=5, ge=1, le=100)
    fully_buffered_epsilon_seconds: float = Field(default=0.5, ge=0.0)
    progress_threshold_seconds: float = Field(default=1.0, ge=0.0)

    @field_validator("max_step_seconds")
    @classmethod
    def validate_step_bounds(cls, v: float, info: ValidationInfo) -> float:
        """Reject a maximum step smaller than the minimum step."""
        min_step = info.data.get("min_step_seconds")
        if min_step is not None and v < min_step:
            raise ValueError(
                f"max_step_seconds ({v}) must be >= min_step_seconds ({min_step})"
            )
        return v

    class Config:
        """Pydantic configuration."""

        env_prefix = "FORCEBUFFER_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Singleton configuration instance
_config: ForceBufferConfig | None = None


def get_config() -> ForceBufferConfig:
    """Get the global configuration instance.

    Returns:
        ForceBufferConfig: Configuration singleton
    """
    global _config
    if _config is None:
        _config = ForceBufferConfig()
    return _config

