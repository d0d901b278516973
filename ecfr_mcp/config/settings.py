"""Centralized configuration management for the eCFR MCP server.

This module provides a single source of truth for all configuration
including the upstream API address, timeouts, logging and metrics settings.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Centralized settings for the eCFR MCP server."""

    # === Upstream API Configuration ===
    ecfr_base_url: str = Field(default="https://www.ecfr.gov", description="Base address of the eCFR API")
    request_timeout: float = Field(default=60.0, description="Timeout in seconds for one upstream request")
    error_body_limit: int = Field(
        default=500, description="Maximum characters of an upstream error body kept in error messages"
    )
    user_agent: str = Field(default="ecfr-mcp/0.2.0", description="User-Agent header sent upstream")

    # === Tool Defaults ===
    default_recent_days: int = Field(default=180, description="Look-back window for recent changes")
    section_search_results: int = Field(
        default=200, description="Search results fetched while resolving a section's structure index"
    )

    # === Test Environment Detection ===
    pytest_current_test: str | None = Field(default=None, description="Test mode indicator")

    # === HTTP SSE Server Configuration ===
    sse_host: str = Field(default="localhost", description="SSE server host")
    sse_port: int = Field(default=3001, description="SSE server port")

    # === Logging Configuration ===
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: str = Field(default=str(_PACKAGE_DIR), description="Directory for rotating log files")
    structured_logging: bool = Field(default=True, description="Enable structured JSON error logging")

    # === Performance Configuration ===
    enable_metrics: bool = Field(default=True, description="Enable metrics collection")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific adjustments."""
        super().__init__(**kwargs)
        self._adjust_for_test_environment()

    def _adjust_for_test_environment(self):
        """Adjust settings for test environment."""
        if self.is_test_environment:
            self.enable_metrics = False

    @field_validator("ecfr_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        return value.rstrip("/")

    @field_validator("error_body_limit", "default_recent_days", "section_search_results")
    @classmethod
    def require_positive(cls, value: int) -> int:
        """Reject non-positive limits."""
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @property
    def is_test_environment(self) -> bool:
        """Check if running in test environment."""
        return "PYTEST_CURRENT_TEST" in os.environ or self.pytest_current_test is not None

    @property
    def log_dir_path(self) -> Path:
        """Get the log directory as a Path object, creating it if needed."""
        path = Path(self.log_dir).resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        load_dotenv()  # Load .env file
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset the global settings instance (primarily for testing)."""
    global _settings
    _settings = None
