"""Library-wide logging helpers.

``setup_logging()``  configures a :class:`RotatingFileHandler` on the
``taskrecover`` logger.

``safe_print(msg, level)``  emits a log entry at the requested level.

``StructuredFormatter`` outputs JSON log lines for machine-readable logs.

``request_context`` / ``timed`` provide observability helpers for tracing
and performance measurement of individual recoveries.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import time
import uuid
from collections.abc import Generator
from logging.handlers import RotatingFileHandler
from typing import Any

from taskrecover.config import get_settings

LOGGER_NAME = "taskrecover"

# Per-context so concurrent recoveries keep their own correlation id
_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("taskrecover_request_id", default="")

_EXTRA_FIELDS = ("duration_ms", "tier", "passes", "outcome", "keys", "step", "error")


# ── Structured JSON Formatter ───────────────────────────────────────────


class StructuredFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    Fields: timestamp, level, logger, message, request_id, and any extras
    passed via the ``extra`` kwarg on the logging call.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = _request_id.get()
        if rid:
            log_entry["request_id"] = rid

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])

        return json.dumps(log_entry, ensure_ascii=False, default=str)


# ── Setup ───────────────────────────────────────────────────────────────


def setup_logging(*, json_format: bool | None = None, level: int = logging.INFO) -> logging.Handler:
    """Attach a rotating file handler to the ``taskrecover`` logger.

    Args:
        json_format: If True, use StructuredFormatter (JSON lines).  If False,
                     use the classic human-readable format.  ``None`` defers
                     to ``settings.log_json``.
        level: Level for the package logger.

    Returns the installed handler so callers can detach it again.
    """
    settings = get_settings()
    if json_format is None:
        json_format = settings.log_json

    logger = logging.getLogger(LOGGER_NAME)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()

    handler = RotatingFileHandler(
        settings.log_file,
        mode="a",
        encoding="utf-8",
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
    )

    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def safe_print(text: str, level: int = logging.INFO, **extra: Any) -> None:
    """Emit *text* through the package logger, attaching any *extra* fields."""
    logging.getLogger(LOGGER_NAME).log(level, text, extra=extra or None)


# ── Observability helpers ───────────────────────────────────────────────


def set_request_id(rid: str | None = None) -> str:
    """Set a correlation ID for the current context.  Returns the ID."""
    value = rid or uuid.uuid4().hex[:12]
    _request_id.set(value)
    return value


def get_request_id() -> str:
    """Return the current correlation ID (empty if unset)."""
    return _request_id.get()


def clear_request_id() -> None:
    """Clear the current correlation ID."""
    _request_id.set("")


@contextlib.contextmanager
def request_context(rid: str | None = None) -> Generator[str, None, None]:
    """Context manager that sets and restores a correlation ID.

    Usage::

        with request_context() as rid:
            outcome = recover(text)
            # all log lines within will include request_id
    """
    token = _request_id.set(rid or uuid.uuid4().hex[:12])
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


@contextlib.contextmanager
def timed(operation: str, **extra: Any) -> Generator[None, None, None]:
    """Context manager that logs the duration of an operation.

    Usage::

        with timed("recover", tier="raw"):
            result = do_work()

    Emits a DEBUG log with ``duration_ms`` at the end.
    """
    logger = logging.getLogger(f"{LOGGER_NAME}.timing")
    start = time.perf_counter()
    logger.debug(f"[START] {operation}")
    try:
        yield
    except Exception:
        elapsed = (time.perf_counter() - start) * 1000
        logger.error(
            f"[FAILED] {operation} after {elapsed:.0f}ms",
            extra={"duration_ms": round(elapsed), "step": operation, **extra},
        )
        raise
    else:
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            f"[DONE] {operation} in {elapsed:.0f}ms",
            extra={"duration_ms": round(elapsed), "step": operation, **extra},
        )
