"""Probe configuration management via pydantic-settings.

Centralize the tunable parameters of the health probe. Every field has a
default, so the probe runs with no environment at all; variables prefixed
with ``HEALTHCHECK_`` (or a `.env` file) override them.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Probe-wide configuration settings.

    Attributes:
        CONNECT_TIMEOUT: Seconds allowed to establish the TCP/TLS connection.
        REQUEST_TIMEOUT: Seconds allowed for each remaining phase of the request.
        ENVIRONMENT: Deployment environment identifier.
        LOG_LEVEL: Minimum logging verbosity level.
        LOGGING_NOISY_MODULES: Third-party loggers pinned to WARNING.
    """

    model_config = SettingsConfigDict(
        env_prefix="HEALTHCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ==========================================================================
    # TIMEOUTS
    # ==========================================================================
    CONNECT_TIMEOUT: float = Field(default=2.0, gt=0)
    REQUEST_TIMEOUT: float = Field(default=2.0, gt=0)

    # ==========================================================================
    # ENVIRONMENT & LOGGING
    # ==========================================================================
    ENVIRONMENT: Literal["development", "staging", "production"] = "production"
    LOG_LEVEL: Literal["debug", "info", "warning", "error", "critical"] = "warning"
    LOGGING_NOISY_MODULES: list[str] = [
        "httpx",
        "httpcore",
    ]

    @field_validator("REQUEST_TIMEOUT")
    @classmethod
    def validate_request_timeout(cls, v: float, info: ValidationInfo) -> float:
        """Validate that the connect phase fits inside the request budget.

        Args:
            v: The REQUEST_TIMEOUT value to validate.
            info: Pydantic validation context containing other field data.

        Returns:
            The validated REQUEST_TIMEOUT.

        Raises:
            ValueError: If CONNECT_TIMEOUT exceeds REQUEST_TIMEOUT.
        """
        connect_timeout = info.data.get("CONNECT_TIMEOUT")
        if connect_timeout is not None and connect_timeout > v:
            raise ValueError(
                f"CONNECT_TIMEOUT ({connect_timeout}s) cannot exceed "
                f"REQUEST_TIMEOUT ({v}s)."
            )
        return v


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton instance of the probe settings.

    Returns:
        The singleton Settings instance.
    """
    return Settings()
