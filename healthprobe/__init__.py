"""Single-shot HTTP health probe for container orchestration."""

__version__ = "0.1.0"
