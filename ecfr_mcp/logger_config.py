"""Logging configuration for the eCFR MCP server.

Two dedicated loggers write rotating files next to each other:
- mcp_call_logger: one line per tool call with arguments and result preview
- error_logger: structured JSON records for failures, with error categories
"""

import functools
import inspect
import json
import logging
import traceback
from datetime import datetime
from datetime import timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Any

from mcp.server.fastmcp.exceptions import ToolError

from .config import get_settings
from .metrics_config import record_tool_outcome
from .metrics_config import tool_timer

RESULT_PREVIEW_CHARS = 2000

# Attributes present on every LogRecord; anything else was passed via ``extra``.
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class ErrorCategory(Enum):
    """Severity categories for structured error logging."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


_CATEGORY_LEVELS = {
    ErrorCategory.CRITICAL: logging.CRITICAL,
    ErrorCategory.ERROR: logging.ERROR,
    ErrorCategory.WARNING: logging.WARNING,
    ErrorCategory.INFO: logging.INFO,
}


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


def _build_file_handler(filename: str, formatter: logging.Formatter) -> logging.Handler:
    settings = get_settings()
    # maxBytes: 10MB per file, backupCount: 5 files (total ~50MB)
    handler = RotatingFileHandler(
        settings.log_dir_path / filename, maxBytes=10 * 1024 * 1024, backupCount=5
    )
    handler.setFormatter(formatter)
    return handler


# --- Logging Setup ---
mcp_call_logger = logging.getLogger("mcp_call_logger")
mcp_call_logger.setLevel(logging.INFO)
if not mcp_call_logger.handlers:
    mcp_call_logger.addHandler(
        _build_file_handler(
            "mcp_calls.log",
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )
    )
# Prevent logs from propagating to the root logger (stdout carries the stdio transport)
mcp_call_logger.propagate = False

error_logger = logging.getLogger("error_logger")
error_logger.setLevel(logging.INFO)
if not error_logger.handlers:
    error_logger.addHandler(_build_file_handler("errors.log", StructuredLogFormatter()))
error_logger.propagate = False


def configure_logging(level: str | None = None) -> None:
    """Configure the package logger used by client and service modules.

    Records go to stderr so they never interleave with stdio protocol frames.
    """
    settings = get_settings()
    package_logger = logging.getLogger("ecfr_mcp")
    package_logger.setLevel((level or settings.log_level).upper())
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            StructuredLogFormatter()
            if settings.structured_logging
            else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        package_logger.addHandler(handler)


def log_structured_error(
    category: ErrorCategory,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    operation: str | None = None,
    **extra_fields: Any,
) -> None:
    """Log an error with a category, operation name and free-form context."""
    extra: dict[str, Any] = {"error_category": category.value}
    if operation:
        extra["operation"] = operation
    if context:
        extra.update(context)
    extra.update(extra_fields)
    if exception is not None:
        extra["exception_type"] = type(exception).__name__
        error_code = getattr(exception, "error_code", None)
        if error_code:
            extra["error_code"] = error_code
        details = getattr(exception, "details", None)
        if details:
            extra["error_details"] = details

    error_logger.log(
        _CATEGORY_LEVELS[category],
        message,
        exc_info=exception is not None,
        extra=extra,
    )


def _format_for_log(value: Any) -> str:
    """Compact rendering of arguments and results, Pydantic models as JSON."""
    try:
        if hasattr(value, "model_dump_json"):
            return value.model_dump_json(indent=None, exclude_none=True)
        if isinstance(value, list) and value and hasattr(value[0], "model_dump_json"):
            return "[" + ", ".join(_format_for_log(item) for item in value) + "]"
        return repr(value)
    except Exception as e:
        return f"<unloggable value: {e}>"


def _result_size(result: Any) -> int:
    if isinstance(result, str):
        return len(result.encode("utf-8"))
    try:
        return len(json.dumps(result, default=str))
    except (TypeError, ValueError):
        return len(str(result))


def _preview(text: str) -> str:
    if len(text) <= RESULT_PREVIEW_CHARS:
        return text
    return f"{text[:RESULT_PREVIEW_CHARS]}... [{len(text)} chars]"


def _log_call(func_name: str, args: tuple, kwargs: dict) -> Any:
    start_time = tool_timer()
    logged_args = [_format_for_log(arg) for arg in args]
    logged_kwargs = {k: _format_for_log(v) for k, v in kwargs.items()}
    mcp_call_logger.info(f"Calling tool: {func_name} with args={logged_args}, kwargs={logged_kwargs}")
    return start_time


def _log_success(func_name: str, start_time: Any, result: Any) -> None:
    try:
        record_tool_outcome(func_name, start_time)
    except Exception as e:
        # Metrics must never fail a tool call
        mcp_call_logger.warning(f"Metrics success recording failed for {func_name}: {e}")
    mcp_call_logger.info(
        f"Tool {func_name} returned {_result_size(result)} bytes: {_preview(_format_for_log(result))}"
    )


def _log_failure(func_name: str, start_time: Any, error: Exception) -> None:
    try:
        record_tool_outcome(func_name, start_time, error)
    except Exception as metrics_error:
        mcp_call_logger.warning(f"Metrics error recording failed for {func_name}: {metrics_error}")

    mcp_call_logger.error(f"Tool {func_name} raised exception: {error}", exc_info=True)
    if isinstance(error, ToolError):
        # raise_tool_error already wrote the structured record
        return
    log_structured_error(
        category=ErrorCategory.ERROR,
        message=f"Tool {func_name} failed: {error}",
        exception=error,
        operation="tool_execution",
        function=func_name,
    )


# --- Decorator for Logging MCP Calls with Metrics ---
def log_mcp_call(func):
    """Log every call of a tool handler, its result and any exception.

    Works for both plain and ``async`` handlers; the wrapper keeps the
    wrapped signature so the MCP runtime still derives the tool schema.
    """
    func_name = getattr(func, "__name__", "unknown_function")

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = _log_call(func_name, args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_failure(func_name, start_time, e)
                raise
            _log_success(func_name, start_time, result)
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = _log_call(func_name, args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_failure(func_name, start_time, e)
            raise
        _log_success(func_name, start_time, result)
        return result

    return wrapper
