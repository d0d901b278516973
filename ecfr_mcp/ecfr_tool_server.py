"""MCP Server for the Electronic Code of Federal Regulations.

This module provides a FastMCP-based MCP server that exposes tools for
searching the eCFR, reading title structure and text, and comparing a
title's structure between two dates.
"""

import argparse
import sys

from dotenv import load_dotenv
from mcp.server import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.responses import PlainTextResponse

from . import __version__
from .config import get_settings
from .logger_config import configure_logging
from .metrics_config import ensure_metrics_initialized
from .metrics_config import export_prometheus
from .metrics_config import metrics_active
from .metrics_config import metrics_status
from .metrics_config import shutdown_metrics
from .tools import register_comparison_tools
from .tools import register_reference_tools
from .tools import register_search_tools
from .tools import register_structure_tools

# Load environment variables from .env file
load_dotenv()

mcp_server = FastMCP(name="ecfr-mcp")

# Register tools from modular architecture
register_search_tools(mcp_server)
register_reference_tools(mcp_server)
register_structure_tools(mcp_server)
register_comparison_tools(mcp_server)


@mcp_server.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": __version__, "metrics": metrics_status()})


@mcp_server.custom_route("/metrics", methods=["GET"])
async def metrics(request: Request) -> PlainTextResponse:
    body, content_type = export_prometheus()
    return PlainTextResponse(body, media_type=content_type)


__all__ = ["mcp_server", "main"]


def _status(message: str) -> None:
    # stdout carries the stdio transport
    print(message, file=sys.stderr)


# --- Main Server Execution ---
def main():
    """Run the main entry point for the server with argument parsing."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="eCFR MCP Server")
    parser.add_argument(
        "transport",
        choices=["sse", "stdio"],
        default="stdio",
        nargs="?",
        help="Transport: 'sse' for HTTP SSE or 'stdio' for standard I/O (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default=settings.sse_host,
        help=f"Host to bind to for SSE transport (default: {settings.sse_host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.sse_port,
        help=f"Port to bind to for SSE transport (default: {settings.sse_port})",
    )

    args = parser.parse_args()

    configure_logging()
    if settings.enable_metrics:
        ensure_metrics_initialized()

    _status(f"eCFR tool server {__version__} starting. Tools exposed by '{mcp_server.name}'.")
    _status(f"Upstream API: {settings.ecfr_base_url}")
    _status(f"Metrics: {'enabled' if metrics_active() else 'disabled'}")

    try:
        if args.transport == "stdio":
            _status("MCP server running with stdio transport. Waiting for client connection...")
            mcp_server.run(transport="stdio")
        else:
            _status(f"MCP server running with HTTP SSE transport on {args.host}:{args.port}")
            _status(f"SSE endpoint: http://{args.host}:{args.port}/sse")
            _status(f"Health endpoint: http://{args.host}:{args.port}/health")
            if metrics_active():
                _status(f"Metrics endpoint: http://{args.host}:{args.port}/metrics")
            # Update server settings before running
            mcp_server.settings.host = args.host
            mcp_server.settings.port = args.port
            mcp_server.run(transport="sse")
    finally:
        shutdown_metrics()


if __name__ == "__main__":
    main()
