"""Logging setup for Auctionwatch.

Log calls made inside a :func:`log_context` block carry the block's fields,
rendered after the message as ``[key=value ...]``. Snapshot handling tags
its lines with the snapshot generation and source, and bulk deletes tag
theirs with the event key.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Mapping

_log_context: ContextVar[dict[str, Any]] = ContextVar(
    "auctionwatch_log_context", default={})

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def render_context(fields: Mapping[str, Any]) -> str:
    """Render context fields as ``key=value`` pairs in insertion order."""
    return " ".join(f"{key}={value}" for key, value in fields.items())


class ContextualFormatter(logging.Formatter):
    """Formatter that appends the active log context to the message.

    The record itself is never modified. Context values such as event keys
    come from auction names and may contain ``%``, so they must stay out of
    ``record.msg``.
    """

    def formatMessage(self, record: logging.LogRecord) -> str:
        text = super().formatMessage(record)
        fields = _log_context.get()
        if fields:
            return f"{text} [{render_context(fields)}]"
        return text


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Add ``fields`` to every log line emitted inside the block.

    Usage::

        with log_context(snapshot=12, source="subscription"):
            logger.info("Rebuilding auction events")

    Nested blocks merge their fields; the outer context is restored on exit.
    Each asyncio task sees the context it was created with.
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


_configured = False


def configure_logging(
    level: int = logging.INFO,
    third_party_level: int = logging.WARNING,
) -> None:
    """Install a single stderr handler using :class:`ContextualFormatter`.

    Only the first call has any effect, so the CLI group and the API
    lifespan can both call it.

    Args:
        level: Level for the root logger.
        third_party_level: Level for the chatty loggers in ``QUIET_LOGGERS``.
    """
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ContextualFormatter(LOG_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(name: str) -> logging.Logger:
    """Return the logger ``name``.

    Before :func:`configure_logging` has run, and while nothing else has
    configured the root logger, the logger gets its own contextual stderr
    handler so library use still produces readable output.
    """
    logger = logging.getLogger(name)
    if not _configured and not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(ContextualFormatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """Log ``exc`` with its traceback under ``message`` and extra context."""
    with log_context(**context):
        logger.exception("%s: %s", message, exc)
