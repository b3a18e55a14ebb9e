"""
Structured logging with request ID support.

Everything logs under the `quickplay` logger tree. Records carry a request_id
from the current request context plus whichever pipeline fields the caller
passed in `extra` (user_id, game_id, record_id, ...). Production renders one
JSON object per line; development renders one readable line with the same
fields appended as key=value pairs.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Fields lifted from `extra` into the rendered line, in this order
CONTEXT_FIELDS = (
    "user_id",
    "game_id",
    "record_id",
    "event_type",
    "reason",
    "count",
    "total_plays",
    "job_id",
    "elapsed_ms",
    "error_code",
    "status",
    "method",
    "path",
    "latency_bucket",
)

_LATENCY_BUCKETS = (
    (10, "<10ms"),
    (100, "10-100ms"),
    (500, "100-500ms"),
    (1000, "500-1000ms"),
)

MAX_FIELD_LENGTH = 500


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    """Fetch the current request_id from context (if any)."""
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for upper, label in _LATENCY_BUCKETS:
        if latency_ms < upper:
            return label
    return ">=1000ms"


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


def _context(record: logging.LogRecord) -> dict:
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            context[name] = value
    return context


class RequestIdFilter(logging.Filter):
    """Stamp the context request_id on records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            **_context(record),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [_timestamp(record), record.levelname, f"[{record.name}]"]
        rid = getattr(record, "request_id", None)
        if rid:
            parts.append(f"[rid={rid}]")
        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in _context(record).items())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(env: str = "development") -> None:
    """Install one stdout handler on the `quickplay` logger; JSON in production."""
    logger = logging.getLogger("quickplay")
    logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def _truncate(value):
    if value is None or isinstance(value, (bool, int, float)):
        return value
    try:
        text = str(value)
    except Exception:
        return "<unserializable>"
    if len(text) <= MAX_FIELD_LENGTH:
        return text
    return text[:MAX_FIELD_LENGTH] + "...<truncated>"


def log_event(level: str, msg: str, **fields) -> None:
    """
    Log `msg` on the `quickplay` logger with `fields` as record attributes.

    String values are truncated; numbers pass through untouched. Configures
    logging on first use in processes that never called configure_logging
    (RQ workers, one-off jobs).
    """
    logger = logging.getLogger("quickplay")
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"))

    extra = {key: _truncate(value) for key, value in fields.items()}
    extra.setdefault("request_id", get_request_id())
    getattr(logger, level, logger.info)(msg, extra=extra)
