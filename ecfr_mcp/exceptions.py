"""Exception hierarchy for the eCFR MCP server.

Every error raised by the client, the comparison engine or the lookup
operations derives from EcfrMCPError so tool handlers can report it with a
stable error code and a message fit for the calling agent.
"""

from __future__ import annotations

from typing import Any


class EcfrMCPError(Exception):
    """Base class for all eCFR MCP errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class UpstreamHTTPError(EcfrMCPError):
    """The eCFR API answered with a non-success status code."""

    def __init__(
        self,
        status_code: int,
        status_text: str,
        url: str,
        body: str = "",
        body_limit: int = 500,
    ):
        excerpt = body[:body_limit] if body else ""
        message = f"HTTP {status_code} {status_text} from {url}"
        if excerpt:
            message += f" - body: {excerpt}"
        super().__init__(
            message=message,
            error_code="UPSTREAM_HTTP_ERROR",
            details={
                "status_code": status_code,
                "status_text": status_text,
                "url": url,
                "body_excerpt": excerpt,
            },
        )
        self.status_code = status_code
        self.status_text = status_text
        self.url = url
        self.body_excerpt = excerpt


class UpstreamConnectionError(EcfrMCPError):
    """The eCFR API could not be reached."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Request to {url} failed: {reason}",
            error_code="UPSTREAM_UNAVAILABLE",
            details={"url": url, "reason": reason},
        )
        self.url = url


class SectionResolutionError(EcfrMCPError):
    """A section could not be mapped to a content structure index."""

    def __init__(self, message: str, title: int | None = None, section: str | None = None):
        details: dict[str, Any] = {}
        if title is not None:
            details["title"] = title
        if section is not None:
            details["section"] = section
        super().__init__(message=message, error_code="SECTION_NOT_RESOLVED", details=details)


class ValidationError(EcfrMCPError):
    """A tool argument passed schema validation but cannot be used."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details: dict[str, Any] = {}
        if field is not None:
            details["field"] = field
        if value is not None:
            details["invalid_value"] = value
        super().__init__(message=message, error_code="VALIDATION_ERROR", details=details)
