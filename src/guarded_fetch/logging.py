"""Structured logging configuration for the CLI."""

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(
    level: int = logging.WARNING,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Route guarded fetch audit and retry events to a stream.

    Audit events from the validators are emitted at error level, so the
    default WARNING level keeps security blocks and exhausted retries
    visible while hiding per-attempt debug noise.

    Args:
        level: Minimum level to emit (default: WARNING).
        output: Output stream (default: stderr).
        json_format: JSON lines when True, console rendering otherwise.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )
