"""Structured logging for the partition maintenance tools.

structlog renders to stderr so that stdout carries only the statement report
printed by the CLI. The level follows ``settings.debug``.
"""

import logging
import sys

import structlog

_configured = False


def configure_logging(level: int | None = None) -> None:
    """Configure structlog processors once.

    Args:
        level: stdlib logging level; defaults to DEBUG when ``settings.debug``
            is set and INFO otherwise. Ignored after the first call.
    """
    global _configured
    if _configured:
        return

    if level is None:
        from datasource_tools.core.config import settings

        level = logging.DEBUG if settings.debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound with ``logger_name``, configuring on first use."""
    configure_logging()
    return structlog.get_logger(logger_name=name)
