"""Command-line entry point for the health probe.

Configure logging, run one probe against the URL given as the first
argument, and exit with its status. Confine all side effects (logging
setup, process exit) to `main` so `run` stays testable.
"""

import logging.config
import sys
from typing import NoReturn, Optional, Sequence

from pydantic import ValidationError

from healthprobe.config import Settings, get_settings
from healthprobe.core.logging_config import (
    configure_structlog_wrapper,
    get_logger,
    get_logging_config,
)
from healthprobe.healthcheck import run


def configure_logging(settings: Settings) -> None:
    """Apply the stdlib and structlog logging configuration."""
    logging.config.dictConfig(get_logging_config(settings))
    configure_structlog_wrapper(settings)


def main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Run the probe and terminate the process with its exit code.

    Invalid settings end the process with exit code 1, so a misconfigured
    probe never reports healthy.

    Args:
        argv: Arguments without the program name. Defaults to ``sys.argv[1:]``.
    """
    args = sys.argv[1:] if argv is None else list(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        # Fall back to default logging so the failure is still reported on stderr.
        configure_logging(Settings.model_construct())
        get_logger("main").error("Invalid probe configuration", error=str(e))
        sys.exit(1)

    configure_logging(settings)
    sys.exit(run(args, settings=settings))
