"""Structured logging utilities with context management."""

import contextvars
import sys
from typing import Any

from loguru import logger

# Context variables for maintaining rule/run/batch context
log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("log_context", default={})

CONTEXT_KEYS = ("rule_id", "run_id", "batch_id")


class LoggingContext:
    """
    Context manager for structured logging with automatic context injection.

    Example:
        with LoggingContext(rule_id="STR-42"):
            logger.info("Submitting rule")  # Will include rule_id
    """

    def __init__(self, **context_data):
        """
        Initialize logging context.

        Args:
            **context_data: Key-value pairs to add to logging context
        """
        self.context_data = context_data
        self.token = None

    def __enter__(self):
        """Enter context and set context variables."""
        current = log_context.get().copy()
        current.update(self.context_data)
        self.token = log_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context and restore previous context."""
        if self.token:
            log_context.reset(self.token)


def _context_filter(record) -> bool:
    """Add context variables to log record."""
    for key in CONTEXT_KEYS:
        record["extra"].setdefault(key, "-")
    record["extra"].update(log_context.get())
    return True


def configure_structured_logging(
    level: str = "INFO",
    file: str | None = None,
    rotation: str = "100 MB",
    retention: str = "30 days",
):
    """
    Configure loguru to include context variables in all log messages.

    This should be called once at application startup.

    Args:
        level: Console log level
        file: Optional path of a rotating text log file
        rotation: File rotation policy
        retention: File retention policy
    """
    logger.remove()

    logger.add(
        sink=sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[rule_id]}</cyan>:<cyan>{extra[run_id]}</cyan>:<cyan>{extra[batch_id]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        filter=_context_filter,
        level=level,
        colorize=True,
    )

    if file:
        logger.add(
            sink=file,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra} | {name}:{function}:{line} | {message}",
            filter=_context_filter,
            level="INFO",
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=False,
        )
