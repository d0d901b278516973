"""Conversion of failures into MCP tool errors.

Tool handlers catch everything at their boundary and hand it to
``raise_tool_error``, which logs a structured record and raises the MCP
runtime's ToolError so the caller receives an ``isError`` result instead of
a transport-level failure.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import NoReturn

from mcp.server.fastmcp.exceptions import ToolError

from .exceptions import EcfrMCPError
from .logger_config import ErrorCategory
from .logger_config import log_structured_error

logger = logging.getLogger(__name__)


def format_tool_error(prefix: str, error: BaseException) -> str:
    """Build the human-readable message reported to the caller."""
    if isinstance(error, EcfrMCPError):
        detail = error.message
    else:
        detail = str(error) or type(error).__name__
    return f"{prefix}: {detail}"


def raise_tool_error(
    tool_name: str,
    prefix: str,
    error: Exception,
    context: dict[str, Any] | None = None,
) -> NoReturn:
    """Log ``error`` for ``tool_name`` and re-raise it as a ToolError."""
    message = format_tool_error(prefix, error)
    # Upstream and input problems are expected; anything else is a bug.
    category = ErrorCategory.WARNING if isinstance(error, EcfrMCPError) else ErrorCategory.ERROR
    log_structured_error(
        category=category,
        message=message,
        exception=error,
        context=context,
        operation=tool_name,
    )
    logger.error("%s failed: %s", tool_name, message)
    raise ToolError(message) from error
