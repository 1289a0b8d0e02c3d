"""Logging for the chatbot service.

Every record emitted under the ``rag_chatbot`` logger is stamped with the
current request id. Structured fields go in ``extra={"fields": {...}}``:
production renders them as JSON keys, development appends them as
``key=value`` pairs.
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

from rag_chatbot.config import Settings, get_settings
from rag_chatbot.utils.errors import ChatbotException

ROOT_LOGGER_NAME = "rag_chatbot"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_configured: Optional[logging.Logger] = None


class RequestIdFilter(logging.Filter):
    """Attach the active request id (or "-") to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return dict(getattr(record, "fields", None) or {})


class JSONFormatter(logging.Formatter):
    """One JSON object per line; used in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
        }
        entry.update(_record_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Readable single-line format for development."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s [%(request_id)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        line = super().format(record)
        fields = _record_fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the package logger once per process."""
    global _configured

    if _configured is not None:
        return _configured

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter() if settings.is_production else StandardFormatter())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    # Provider SDKs log every HTTP call at INFO
    for noisy in ("httpx", "openai", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if settings.debug else logging.WARNING)

    _configured = logger
    logger.info(
        "Logging configured",
        extra={"fields": {"level": settings.log_level, "environment": settings.environment.value}},
    )
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the package namespace, e.g. ``rag_chatbot.chat_service``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME)


def set_request_id(request_id: str) -> Token:
    """Bind a request id to the current context; returns the reset token."""
    return request_id_var.set(request_id)


def log_request(method: str, path: str, status_code: int, duration_ms: float, **fields: Any) -> None:
    """One access-log line per request."""
    get_logger("http").info(
        f"{method} {path} {status_code} {duration_ms:.2f}ms",
        extra={
            "fields": {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                **fields,
            }
        },
    )


def log_error(error: Exception, **context: Any) -> None:
    """
    Log a failed request.

    Service errors contribute their code, status and details (which upstream
    ``service`` failed, the ``operation``, the ``model``); anything else is
    logged with its traceback.
    """
    fields: Dict[str, Any] = {"error_type": type(error).__name__, **context}
    if isinstance(error, ChatbotException):
        fields.update(code=error.code, status_code=error.status_code)
        fields.update(error.details)
        exc_info = error if error.__cause__ is not None else None
    else:
        exc_info = error

    get_logger("error").error(
        f"{fields['error_type']}: {error}",
        exc_info=exc_info,
        extra={"fields": fields},
    )
