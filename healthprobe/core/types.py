"""Canonical data structures for probe outcomes.

A probe produces exactly one `ProbeResult`. The record is immutable and
strict so that the exit-code mapping depends on nothing but its fields.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


HEALTHY_STATUS_CODE = 200


class CanonicalModel(BaseModel):
    """Shared configuration for all probe data structures.

    Configuration:
        frozen: Prevents modification after creation.
        extra: Rejects unknown fields.
        str_strip_whitespace: Normalizes string inputs automatically.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        str_strip_whitespace=True,
    )


class ProbeResult(CanonicalModel):
    """Outcome of a single HTTP health probe.

    Either the endpoint answered (``status_code`` is set) or the request
    failed before a response arrived (``error`` is set). Never both.

    Attributes:
        url: Target URL exactly as supplied on the command line.
        status_code: HTTP status of the response, or None when no response arrived.
        error: Short description of the failure cause, or None.
        elapsed_ms: Wall-clock duration of the attempt in milliseconds.

    Example:
        >>> ProbeResult(url="http://localhost:9000/health/ready", status_code=200).exit_code
        0
    """
    url: str = Field(description="Target URL as supplied by the caller.")

    status_code: Optional[int] = Field(
        default=None,
        ge=100,
        le=999,
        description="HTTP status code of the response."
    )

    error: Optional[str] = Field(
        default=None,
        description="Failure cause when no usable response was received."
    )

    elapsed_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Duration of the attempt in milliseconds."
    )

    @model_validator(mode='after')
    def validate_outcome(self) -> 'ProbeResult':
        """Reject results that carry both a response and a failure.

        Raises:
            ValueError: If both status_code and error are set.
        """
        if self.status_code is not None and self.error is not None:
            raise ValueError(
                f"A probe result cannot have both status_code={self.status_code} "
                f"and error={self.error!r}"
            )
        return self

    @property
    def healthy(self) -> bool:
        """True only when the endpoint answered with exactly HTTP 200."""
        return self.status_code == HEALTHY_STATUS_CODE

    @property
    def exit_code(self) -> int:
        """Process exit code for this outcome: 0 if healthy, 1 otherwise."""
        return 0 if self.healthy else 1
