"""The pytest configuration for eCFR MCP testing.

Environment overrides are applied before the package is imported: log files
go to a temporary directory and metrics stay off.
"""

import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ecfr-mcp-logs-"))
os.environ["MCP_METRICS_ENABLED"] = "false"

import pytest  # noqa: E402

from ecfr_mcp.config import reset_settings  # noqa: E402

from .shared.fake_ecfr_api import FakeEcfrApi  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached settings instance around each test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_api():
    """An empty fake eCFR API; tests register the routes they need."""
    return FakeEcfrApi()


@pytest.fixture
def patch_client_factory(monkeypatch, fake_api):
    """Point the tool modules' client factory at the fake API."""
    monkeypatch.setattr("ecfr_mcp.ecfr_client.create_client", lambda settings=None: fake_api.client())
    return fake_api
