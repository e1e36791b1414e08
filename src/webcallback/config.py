"""Configuration management for webcallback."""

import logging
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


class Settings(BaseSettings):
    """webcallback configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the WEBCALLBACK_ prefix. For example:
        WEBCALLBACK_MAX_RETRIES=3
        WEBCALLBACK_LOG_FORMAT=text

    These settings only shape the shared default transport. A callback
    that carries its own transport is not affected by any of them.
    """

    # Retry
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        description=(
            "Total delivery attempts made by the default transport. "
            "Values below 1 fall back to 5."
        ),
    )
    backoff_multiplier: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial backoff delay in seconds (doubles each attempt)",
    )
    backoff_max: float = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound for a single backoff delay in seconds",
    )

    # HTTP
    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-attempt HTTP timeout in seconds for the default transport",
    )

    # Observability
    tracing_enabled: bool = Field(
        default=True,
        description="Open an OpenTelemetry span around each outbound callback",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    model_config = {
        "env_prefix": "WEBCALLBACK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def validate_backoff(self) -> "Settings":
        """Validate the backoff window is ordered correctly."""
        if self.backoff_max < self.backoff_multiplier:
            raise ValueError(
                f"backoff_max ({self.backoff_max}) must be at least "
                f"backoff_multiplier ({self.backoff_multiplier})."
            )
        return self

    @property
    def effective_max_retries(self) -> int:
        """Retry limit with the below-one fallback applied."""
        if self.max_retries < 1:
            logger.debug("max_retries=%d below 1, using %d", self.max_retries, DEFAULT_MAX_RETRIES)
            return DEFAULT_MAX_RETRIES
        return self.max_retries


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
