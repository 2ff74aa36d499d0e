"""Structured logging configuration for mediahook.

Delivery logs go through structlog so each line carries the webhook's
identifying fields as key/value pairs. Worker threads bind their own name
into the log context, so every line written while a task runs says which
partition produced it.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

_configured = False


def _render_processors(format: str) -> list[Processor]:
    if format.lower() == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def configure_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structured logging for mediahook.

    Args:
        level: Log level name. Unknown names fall back to INFO.
        format: "json" for log collectors, "text" for a colored console.

    Example:
        ```python
        from mediahook.logging import configure_logging, get_logger

        configure_logging(level="DEBUG", format="text")
        get_logger(__name__).info("notifier started", url="https://hooks.example.com")
        ```
    """
    global _configured

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_render_processors(format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring defaults on first use.

    Args:
        name: Logger name. Uses the root mediahook logger if None.
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name or "mediahook")  # type: ignore[no-any-return]


def bind_context(**kwargs: object) -> None:
    """Bind fields to every later log line written by the calling thread.

    Context lives in contextvars, so a worker thread does not inherit what a
    producer bound, and vice versa.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = ["bind_context", "clear_context", "configure_logging", "get_logger"]
