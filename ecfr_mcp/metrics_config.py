"""Prometheus metrics for the eCFR MCP server.

Instruments live on an OpenTelemetry MeterProvider whose Prometheus reader
backs the ``/metrics`` route of the SSE server:

- ``ecfr_mcp_tool_calls_total`` / ``ecfr_mcp_tool_duration_seconds``: per tool and outcome
- ``ecfr_upstream_requests_total`` / ``ecfr_upstream_latency_seconds``: per eCFR endpoint family and status
- ``ecfr_section_changes_total``: section changes reported by the comparison tools, per change type

Collection follows MCP_METRICS_ENABLED and is off by default under pytest or CI.
"""

from __future__ import annotations

import os
import socket
import time
from dataclasses import dataclass
from typing import Any

from opentelemetry import metrics
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST
from prometheus_client import generate_latest

from . import __version__
from .models import ChangeSummary

SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "ecfr-mcp")
SERVICE_VERSION = os.getenv("OTEL_SERVICE_VERSION", __version__)
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "local")

_TEST_MARKERS = ("PYTEST_CURRENT_TEST", "CI", "GITHUB_ACTIONS")


def running_under_test() -> bool:
    """True under pytest or a CI runner."""
    return any(marker in os.environ for marker in _TEST_MARKERS)


METRICS_ENABLED = (
    os.getenv("MCP_METRICS_ENABLED", "false" if running_under_test() else "true").lower() == "true"
)


@dataclass
class _Instruments:
    provider: MeterProvider
    reader: PrometheusMetricReader
    tool_calls: Any
    tool_duration: Any
    upstream_requests: Any
    upstream_latency: Any
    section_changes: Any


_instruments: _Instruments | None = None
_setup_attempted = False


def build_resource() -> Resource:
    """OpenTelemetry resource describing this server process."""
    return Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": SERVICE_VERSION,
            "deployment.environment": DEPLOYMENT_ENVIRONMENT,
            "host.name": socket.gethostname(),
        }
    )


def initialize_metrics() -> bool:
    """Create the meter provider and instruments; returns whether metrics are active."""
    global _instruments

    if not METRICS_ENABLED:
        return False
    if _instruments is not None:
        return True

    reader = PrometheusMetricReader()
    provider = MeterProvider(resource=build_resource(), metric_readers=[reader])
    metrics.set_meter_provider(provider)
    meter = metrics.get_meter("ecfr_mcp", SERVICE_VERSION)

    _instruments = _Instruments(
        provider=provider,
        reader=reader,
        tool_calls=meter.create_counter(
            "ecfr_mcp_tool_calls_total", unit="1", description="MCP tool invocations"
        ),
        tool_duration=meter.create_histogram(
            "ecfr_mcp_tool_duration_seconds", unit="s", description="Wall time of MCP tool invocations"
        ),
        upstream_requests=meter.create_counter(
            "ecfr_upstream_requests_total", unit="1", description="Requests sent to the eCFR API"
        ),
        upstream_latency=meter.create_histogram(
            "ecfr_upstream_latency_seconds", unit="s", description="Latency of eCFR API requests"
        ),
        section_changes=meter.create_counter(
            "ecfr_section_changes_total", unit="1", description="Section changes reported by comparisons"
        ),
    )
    return True


def metrics_active() -> bool:
    return METRICS_ENABLED and _instruments is not None


def ensure_metrics_initialized() -> None:
    """Initialize metrics once, at server start."""
    global _setup_attempted
    if _setup_attempted:
        return
    _setup_attempted = True
    if not running_under_test():
        initialize_metrics()


def shutdown_metrics() -> None:
    global _instruments
    if _instruments is None:
        return
    _instruments.provider.shutdown()
    _instruments = None


# --- Tool calls ---


def tool_timer() -> float | None:
    """Start time for a tool call, or None when metrics are off."""
    if not metrics_active():
        return None
    return time.perf_counter()


def record_tool_outcome(tool_name: str, started: float | None, error: BaseException | None = None) -> None:
    """Count a finished tool call and record its duration."""
    if not metrics_active():
        return
    attributes = {
        "tool_name": tool_name,
        "outcome": "error" if error is not None else "success",
        "error_code": getattr(error, "error_code", type(error).__name__) if error is not None else "",
    }
    _instruments.tool_calls.add(1, attributes)
    if started is not None:
        _instruments.tool_duration.record(time.perf_counter() - started, attributes)


# --- Upstream requests ---


def endpoint_family(path: str) -> str:
    """Low-cardinality label for an eCFR path, e.g. ``versioner.structure``.

    Paths look like ``/api/<service>/v1/<resource>/...``; dates, titles and
    structure indexes are dropped.
    """
    segments = path.strip("/").split("/")
    if len(segments) < 4 or segments[0] != "api":
        return "other"
    resource = segments[3].split(".", 1)[0]
    return f"{segments[1]}.{resource}"


def record_upstream_request(path: str, status_code: int | None, elapsed: float | None = None) -> None:
    """Count one eCFR request; ``status_code`` is None when the transport failed."""
    if not metrics_active():
        return
    attributes = {
        "endpoint": endpoint_family(path),
        "status_code": str(status_code) if status_code is not None else "none",
    }
    _instruments.upstream_requests.add(1, attributes)
    if elapsed is not None:
        _instruments.upstream_latency.record(elapsed, attributes)


# --- Comparison results ---


def record_section_changes(title: int, summary: ChangeSummary) -> None:
    """Count the changes a comparison reported, by change type."""
    if not metrics_active():
        return
    for change_type, count in (
        ("added", summary.sections_added),
        ("removed", summary.sections_removed),
        ("modified", summary.sections_modified),
    ):
        if count:
            _instruments.section_changes.add(count, {"title": str(title), "change_type": change_type})


# --- Export ---


def export_prometheus() -> tuple[str, str]:
    """Body and content type for the ``/metrics`` route."""
    if not metrics_active():
        return "# Metrics not available\n", "text/plain"
    return generate_latest().decode("utf-8"), CONTENT_TYPE_LATEST


def metrics_status() -> dict[str, Any]:
    """Short status block for the ``/health`` route."""
    if not metrics_active():
        return {"status": "disabled"}
    return {
        "status": "active",
        "service_name": SERVICE_NAME,
        "service_version": SERVICE_VERSION,
        "environment": DEPLOYMENT_ENVIRONMENT,
    }
