"""Structured logging for flatdb.

Every record is written to stderr (or a caller-supplied stream) because
stdout carries select output. Records carry the emitting module under
the ``logger`` key.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import Processor


def setup_logging(
    level: str = "WARNING",
    log_format: str = "json",
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: 'json' for one object per line, 'console' for humans
        stream: Output stream (defaults to sys.stderr)
    """
    stream = stream or sys.stderr
    threshold = getattr(logging, level.upper())

    processors: list[Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a logger bound to a module name.

    Args:
        name: Module name, recorded as ``logger`` on every event
        **initial_context: Extra key/values bound to the logger

    Returns:
        A bound structlog logger
    """
    # Module loggers exist before setup_logging(); keep the proxy lazy
    if name:
        initial_context = {"logger": name, **initial_context}
    return structlog.get_logger(**initial_context)
