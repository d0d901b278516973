"""Snapshot comparison tools for the eCFR MCP server.

This module contains the two composite tools built on the comparison engine:
- ecfr_compare_title_dates: Diff a title's structure between two dates
- ecfr_get_recent_changes: Diff a title over a trailing window of days
"""

from typing import Any

from mcp.server import FastMCP

from .. import comparison
from .. import ecfr_client
from ..config import get_settings
from ..error_handler import raise_tool_error
from ..logger_config import log_mcp_call
from .params import ChangeTypes
from .params import LookbackDays
from .params import OptionalDate
from .params import OptionalPart
from .params import SnapshotDate
from .params import TitleNumber


def register_comparison_tools(mcp_server: FastMCP) -> None:
    """Register all comparison tools with the MCP server."""

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_compare_title_dates(
        title: TitleNumber,
        start_date: SnapshotDate,
        end_date: SnapshotDate,
        part: OptionalPart = None,
        change_types: ChangeTypes = None,
    ) -> dict[str, Any]:
        """Compare the structure of a CFR title between two dates and report section changes.

        WHAT: Diff two point-in-time snapshots of a title's hierarchy.
        WHEN: Use when asked "what changed in title X between date A and date B?".
        RETURNS: Echoed parameters, a summary of counts and the list of changes.

        The end date is clamped to the title's latest issue date. Sections are
        classified as "added", "removed" or "modified" (heading, reserved flag,
        received date or size differs). The summary counts the filtered list.

        Parameters:
            title (int): CFR title number (1-50)
            start_date (str): Earlier date, YYYY-MM-DD
            end_date (str): Later date, YYYY-MM-DD
            part (Optional[str]): Restrict the comparison to one part
            change_types (Optional[list[str]]): Keep only these categories

        Example Usage:
            ```json
            {
                "name": "ecfr_compare_title_dates",
                "arguments": {
                    "title": 21,
                    "start_date": "2024-01-01",
                    "end_date": "2025-01-01",
                    "part": "1306"
                }
            }
            ```
        """
        try:
            async with ecfr_client.create_client() as client:
                return await comparison.compare_title_dates(
                    client, title, start_date, end_date, part, change_types
                )
        except Exception as e:
            raise_tool_error(
                "ecfr_compare_title_dates",
                "Error comparing eCFR title snapshots",
                e,
                {"title": title, "start_date": start_date, "end_date": end_date, "part": part},
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_recent_changes(
        title: TitleNumber,
        days: LookbackDays = None,
        part: OptionalPart = None,
        end_date: OptionalDate = None,
        change_types: ChangeTypes = None,
    ) -> dict[str, Any]:
        """Report section changes in a CFR title over a trailing window of days.

        WHAT: Convenience wrapper around ecfr_compare_title_dates for "the last N days".
        WHEN: Use when asked "what changed recently in title X?".
        RETURNS: Echoed parameters (with computed start_date), summary and changes.

        Parameters:
            title (int): CFR title number (1-50)
            days (Optional[int]): Days to look back, at least 1 (default: 180)
            part (Optional[str]): Restrict the comparison to one part
            end_date (Optional[str]): Window end, YYYY-MM-DD (default: today)
            change_types (Optional[list[str]]): Keep only these categories
        """
        lookback = days if days is not None else get_settings().default_recent_days
        try:
            async with ecfr_client.create_client() as client:
                return await comparison.get_recent_changes(
                    client, title, lookback, part, end_date, change_types
                )
        except Exception as e:
            raise_tool_error(
                "ecfr_get_recent_changes",
                "Error fetching recent eCFR changes",
                e,
                {"title": title, "days": lookback, "end_date": end_date, "part": part},
            )
