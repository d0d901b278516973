"""Structure and full-text tools for the eCFR MCP server.

- ecfr_get_title_structure: Hierarchy of a title at a date (JSON or XML)
- ecfr_get_title_ancestry: Full hierarchy of a title at a date
- ecfr_get_title_xml: Full XML of a title, optionally narrowed to a part/section
- ecfr_get_part_xml: Full XML of one part
"""

from typing import Any

from mcp.server import FastMCP

from .. import ecfr_client
from .. import lookups
from ..error_handler import raise_tool_error
from ..logger_config import log_mcp_call
from .params import Format
from .params import OptionalPart
from .params import OptionalSection
from .params import RequiredPart
from .params import SnapshotDate
from .params import TitleNumber


def register_structure_tools(mcp_server: FastMCP) -> None:
    """Register all structure tools with the MCP server."""

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_title_structure(
        title: TitleNumber,
        date: SnapshotDate,
        part: OptionalPart = None,
        format: Format = "json",
    ) -> dict[str, Any] | str:
        """Retrieve the hierarchy of a CFR title at a date.

        RETURNS: JSON structure payload, or the raw XML document when format is 'xml'.
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_title_structure(client, title, date, part, format)
        except Exception as e:
            raise_tool_error(
                "ecfr_get_title_structure",
                "Error fetching eCFR title structure",
                e,
                {"title": title, "date": date, "part": part},
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_title_ancestry(title: TitleNumber, date: SnapshotDate) -> dict[str, Any]:
        """Retrieve the full hierarchy (title down to sections) of a CFR title at a date."""
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_title_ancestry(client, title, date)
        except Exception as e:
            raise_tool_error(
                "ecfr_get_title_ancestry", "Error fetching eCFR title ancestry", e, {"title": title, "date": date}
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_title_xml(
        date: SnapshotDate,
        title: TitleNumber,
        part: OptionalPart = None,
        section: OptionalSection = None,
    ) -> str:
        """Get the full XML of a CFR title at a date, optionally narrowed to a part or section.

        Whole titles can be very large; pass part or section where possible.
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_title_xml(client, date, title, part, section)
        except Exception as e:
            raise_tool_error(
                "ecfr_get_title_xml",
                "Error fetching eCFR XML",
                e,
                {"title": title, "date": date, "part": part, "section": section},
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_part_xml(date: SnapshotDate, title: TitleNumber, part: RequiredPart) -> str:
        """Get the XML of one CFR part at a date (smaller than the full title)."""
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_part_xml(client, date, title, part)
        except Exception as e:
            raise_tool_error(
                "ecfr_get_part_xml",
                "Error fetching eCFR part XML",
                e,
                {"title": title, "date": date, "part": part},
            )
