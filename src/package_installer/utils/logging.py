"""Logging configuration utilities."""

import logging

import structlog


def verbosity_to_level(verbosity: int) -> int:
    """Map the ``-v`` count to a log level; debug output needs at least one ``-v``."""
    return logging.DEBUG if verbosity > 0 else logging.WARNING


def setup_logging(verbosity: int = 0, log_format: str = "console") -> None:
    """Configure structured logging to stdout."""

    level = verbosity_to_level(verbosity)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.TimeStamper(fmt="%H:%M:%S"))
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # Reconfigured per run; cached loggers would keep the old level
        cache_logger_on_first_use=False,
    )
