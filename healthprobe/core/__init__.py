"""Shared types and logging configuration for the health probe."""

from healthprobe.core.types import HEALTHY_STATUS_CODE, CanonicalModel, ProbeResult

__all__ = [
    "HEALTHY_STATUS_CODE",
    "CanonicalModel",
    "ProbeResult",
]
