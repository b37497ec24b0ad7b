"""
Structured logging for the equipment tracker.

One logger ("equipment_tracker") writes JSON or text lines depending on
LOG_FORMAT. Fields bound to the current log context (request id, method and
path from the middleware, upload / migration details from the routers) are
attached to every record emitted while that context is active, including
records from worker threads started with asyncio.to_thread.
"""
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from equipment_tracker.core.config import settings

LOGGER_NAME = "equipment_tracker"

_log_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar("log_context", default=None)


def start_request_context(request_id: str, **fields: Any) -> None:
    """Replace the current log context; called once per request."""
    _log_context.set({"request_id": request_id, **fields})


def bind_log_context(**fields: Any) -> None:
    """Add fields to the current log context (e.g. upload_filename)."""
    current = _log_context.get() or {}
    _log_context.set({**current, **fields})


def clear_request_context() -> None:
    _log_context.set(None)


def current_log_context() -> Dict[str, Any]:
    return dict(_log_context.get() or {})


class LogContextFilter(logging.Filter):
    """Copies log-context fields onto the record without overriding `extra`."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = current_log_context()
        for key, value in context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        record.context_keys = tuple(context)
        if not hasattr(record, "environment"):
            record.environment = settings.ENVIRONMENT
        return True


class JsonLineFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.pop("context_keys", None)
        log_record["timestamp"] = datetime.utcnow().isoformat() + "Z"
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info and "exception" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)


class TextLineFormatter(logging.Formatter):
    """`[time] [LEVEL] [logger] [env] message [k=v, ...]` with the context fields."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        keys = getattr(record, "context_keys", ())
        if keys:
            line = f"{line} [{', '.join(f'{key}={getattr(record, key, None)}' for key in keys)}]"
        return line


def setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    handler: logging.Handler
    if settings.LOG_FILE:
        handler = logging.FileHandler(settings.LOG_FILE, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stdout)

    if settings.LOG_FORMAT == "json":
        handler.setFormatter(JsonLineFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        handler.setFormatter(TextLineFormatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s] [%(environment)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    logger.addHandler(handler)
    # on the logger, so every handler sees the context fields
    logger.filters.clear()
    logger.addFilter(LogContextFilter())
    logger.propagate = False
    return logger


# Lazy logger instance - only created on first access
_app_logger: Optional[logging.Logger] = None


def get_app_logger() -> logging.Logger:
    global _app_logger
    if _app_logger is None:
        _app_logger = setup_logger()
    return _app_logger


class _LoggerProxy:
    """Proxy that lazily loads logger on first method call."""

    def __getattr__(self, name):
        return getattr(get_app_logger(), name)

    def __repr__(self):
        return repr(get_app_logger())


app_logger = _LoggerProxy()
