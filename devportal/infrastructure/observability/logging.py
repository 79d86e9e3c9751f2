"""Logging setup for devportal.

Request-level fields (url, attempt, page) are kept in a context variable and
appended to every line logged while they are active, so the retry and paging
loops do not have to repeat them in each message.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

_log_context: ContextVar[dict[str, Any]] = ContextVar(
    "log_context", default={})

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
NOISY_LOGGERS = ("urllib3", "requests", "charset_normalizer")


class ContextualFormatter(logging.Formatter):
    """Formatter that appends the active context fields as ``[key=value ...]``."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()
        if ctx:
            fields = " ".join(f"{k}={v}" for k, v in ctx.items())
            # Merge args first; context values may contain '%'.
            record.msg = f"{record.getMessage()} [{fields}]"
            record.args = None
        return super().format(record)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Add ``fields`` to every message logged inside the block.

    Nested blocks merge with the outer fields; the outer set is restored on
    exit.
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
    """Install a single stderr handler on the root logger.

    Called once by the CLI entry point; later calls are ignored.
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
    handler.setFormatter(ContextualFormatter(DEFAULT_FORMAT))
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, usable even before :func:`configure_logging`."""
    logger = logging.getLogger(name)
    if not _configured and not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(ContextualFormatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """Log ``exc`` with its traceback at ERROR level.

    Works outside an ``except`` block, e.g. after a retry loop has kept the
    last exception around.
    """
    with log_context(**context):
        logger.error("%s: %s", message, exc, exc_info=exc)
