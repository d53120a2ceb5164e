"""Structured logging for fileguard.

Retry warnings are emitted through structlog. Applications that want them
rendered as console text or JSON lines call configure_logging() with the
current settings; otherwise structlog's own defaults apply.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from fileguard.config import FileGuardSettings


def configure_logging(settings: "FileGuardSettings | None" = None) -> None:
    """Configure structlog from the log_level and log_format settings.

    Without settings, warnings and above go to stderr as console text.

    Args:
        settings: Settings to read log_level and log_format from
    """
    log_level = logging.WARNING
    log_format = "console"

    if settings is not None:
        log_level = getattr(logging, settings.log_level.upper(), logging.WARNING)
        log_format = settings.log_format

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally named."""
    return structlog.get_logger(name) if name else structlog.get_logger()


class Loggers:
    """Component loggers."""

    @staticmethod
    def io() -> structlog.stdlib.BoundLogger:
        """Logger for file open and retry activity."""
        return get_logger("fileguard.io")
