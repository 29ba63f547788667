"""Structured logging helpers for the closet service."""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator

CORRELATION_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}
_SENSITIVE_KEYS = {"user_id", "email", "image_url", "image_path", "notes"}
_VECTOR_KEYS = {"v_image", "v_text", "embedding"}
_EMAIL_PATTERN = re.compile(r"[\w.\-]+@[\w.\-]+")
_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the correlation id and extras."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", record.getMessage()),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        extras = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRIBUTES}
        for key, value in redact_for_log(extras).items():
            payload.setdefault(key, value)
        return json.dumps(payload, default=str)


class _CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = CORRELATION_ID.get() or "-"
        return True


def configure_logging(level: int | str | None = None, fmt: str | None = None) -> None:
    """Route root logging to stderr as JSON, or as text when LOG_FORMAT=text."""

    desired_level = level or os.getenv("LOG_LEVEL", "INFO")
    desired_format = (fmt or os.getenv("LOG_FORMAT", "json")).lower()

    handler = logging.StreamHandler()
    if desired_format == "text":
        handler.addFilter(_CorrelationFilter())
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=desired_level, handlers=[handler], force=True)


def _summarise_vector(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and all(isinstance(v, (int, float)) for v in value):
        return f"[vector dim={len(value)}]"
    return redact_for_log(value)


def redact_for_log(payload: Any) -> Any:
    """Mask user identifiers and image locations, and shorten raw vectors."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        if _EMAIL_PATTERN.search(payload):
            return _EMAIL_PATTERN.sub("[redacted-email]", payload)
        return "[redacted-url]" if payload.lower().startswith("http") else payload
    if isinstance(payload, (list, tuple)):
        return [redact_for_log(item) for item in payload]
    if isinstance(payload, dict):
        scrubbed: Dict[str, Any] = {}
        for key, value in payload.items():
            if key in _SENSITIVE_KEYS:
                scrubbed[key] = "[redacted]"
            elif key in _VECTOR_KEYS:
                scrubbed[key] = _summarise_vector(value)
            else:
                scrubbed[key] = redact_for_log(value)
        return scrubbed
    return str(payload)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, else keep the current one, else mint one."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    minted = uuid.uuid4().hex
    CORRELATION_ID.set(minted)
    return minted


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Scope a correlation id to a block, e.g. a single HTTP request."""

    token = CORRELATION_ID.set(correlation_id or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None, **fields: Any) -> Iterator[str]:
    """Run a named unit of work under its own correlation id."""

    logger = get_logger("closet.operations")
    with correlation_context(correlation_id) as scoped_id:
        log_event(logger, logging.DEBUG, "operation_context_entered", operation=name, **fields)
        yield scoped_id


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with redacted ``fields`` attached as structured extras."""

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
