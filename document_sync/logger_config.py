"""Logging configuration for the Document Sync system.

Two loggers are configured at import time:

- ``store_call_logger``: one line per store operation call and result
- ``error_logger``: structured JSON records for errors and warnings

Both write to rotating files under ``DOCUMENT_SYNC_LOG_DIR``
(default ``~/.document_sync/logs``).
"""

import functools
import json
import logging
import os
import traceback
from datetime import datetime
from datetime import timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

# Import metrics functionality (will gracefully handle if not available)
try:
    from .metrics_config import record_operation_error
    from .metrics_config import record_operation_start
    from .metrics_config import record_operation_success

    METRICS_AVAILABLE = True
except ImportError:
    METRICS_AVAILABLE = False

# Attributes every LogRecord has; anything else was passed through ``extra``
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

# Longest argument or result description written to the call log
_MAX_LOGGED_ARG_LENGTH = 200


class ErrorCategory(Enum):
    """Severity categories for structured error logging."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class StructuredLogFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def _log_dir() -> Path:
    path = Path(os.environ.get("DOCUMENT_SYNC_LOG_DIR", Path.home() / ".document_sync" / "logs"))
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Logging Setup ---
_LOG_DIR = _log_dir()

store_call_logger = logging.getLogger("store_call_logger")
store_call_logger.setLevel(logging.INFO)

# maxBytes: 10MB per file, backupCount: 5 files (total ~50MB)
_call_handler = RotatingFileHandler(_LOG_DIR / "store_calls.log", maxBytes=10 * 1024 * 1024, backupCount=5)
_call_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
store_call_logger.addHandler(_call_handler)
store_call_logger.propagate = False

error_logger = logging.getLogger("error_logger")
error_logger.setLevel(logging.INFO)

_error_handler = RotatingFileHandler(_LOG_DIR / "errors.log", maxBytes=10 * 1024 * 1024, backupCount=5)
_error_handler.setFormatter(StructuredLogFormatter())
error_logger.addHandler(_error_handler)
error_logger.propagate = False


def log_structured_error(
    category: ErrorCategory,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    operation: str | None = None,
    **kwargs: Any,
) -> None:
    """Log an error with category, operation and context as structured fields."""
    extra: dict[str, Any] = {"error_category": category.value}
    if operation:
        extra["operation"] = operation
    if context:
        extra.update(context)
    extra.update(kwargs)

    if exception is not None:
        extra.setdefault("exception_type", type(exception).__name__)

    error_logger.log(
        getattr(logging, category.value),
        message,
        exc_info=exception if exception is not None else False,
        extra=extra,
    )


def apply_log_level(level: str) -> int:
    """Set the level of the ``document_sync`` package loggers.

    Raises:
        ValueError: If ``level`` is not a standard logging level name
    """
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.getLogger("document_sync").setLevel(numeric)
    return numeric


def _describe(value: Any) -> str:
    if hasattr(value, "model_dump_json"):
        text = value.model_dump_json(exclude={"content"}, exclude_none=True)
    else:
        text = repr(value)
    if len(text) > _MAX_LOGGED_ARG_LENGTH:
        return text[:_MAX_LOGGED_ARG_LENGTH] + f"...(+{len(text) - _MAX_LOGGED_ARG_LENGTH} chars)"
    return text


# --- Decorator for Logging Store Calls with Metrics ---
def log_store_call(func):
    """Log calls to an async store operation, its result, and any exception."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        func_name = getattr(func, "__name__", "unknown_function")

        start_time = None
        if METRICS_AVAILABLE:
            try:
                start_time = record_operation_start(func_name)
            except Exception as e:
                # Don't let metrics errors break the operation
                store_call_logger.warning(f"Metrics recording failed for {func_name}: {e}")

        # args[0] is the store instance itself
        logged_args = [_describe(arg) for arg in args[1:]]
        logged_kwargs = {k: _describe(v) for k, v in kwargs.items()}
        store_call_logger.info(f"Calling operation: {func_name} with args={logged_args}, kwargs={logged_kwargs}")

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            if METRICS_AVAILABLE:
                try:
                    record_operation_error(func_name, start_time, e)
                except Exception as metrics_error:
                    store_call_logger.warning(f"Metrics error recording failed for {func_name}: {metrics_error}")

            store_call_logger.error(f"Operation {func_name} raised exception: {e}")
            log_structured_error(
                category=ErrorCategory.ERROR,
                message=f"Store operation {func_name} failed",
                exception=e,
                operation="store_operation",
                function=func_name,
            )
            raise

        if METRICS_AVAILABLE:
            try:
                record_operation_success(func_name, start_time)
            except Exception as e:
                store_call_logger.warning(f"Metrics success recording failed for {func_name}: {e}")

        store_call_logger.info(f"Operation {func_name} returned: {_describe(result)}")
        return result

    return wrapper
