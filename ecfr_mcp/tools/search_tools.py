"""Search tools for the eCFR MCP server.

This module contains MCP tools for locating regulatory text:
- ecfr_search_results: Full-text search hits
- ecfr_search_summary: Aggregate counts for a search
- ecfr_search_with_date_range: Search hits filtered by title and effective window
- ecfr_get_section_content: Text of one section, resolved via search when needed
"""

from typing import Any

from mcp.server import FastMCP

from .. import ecfr_client
from .. import lookups
from ..config import get_settings
from ..error_handler import raise_tool_error
from ..logger_config import log_mcp_call
from .params import OptionalDate
from .params import OptionalPart
from .params import OptionalSection
from .params import OptionalTitleNumber
from .params import Order
from .params import ResultLimit
from .params import SearchDate
from .params import SearchQuery
from .params import SnapshotDate
from .params import StructureIndex
from .params import TitleNumber


def register_search_tools(mcp_server: FastMCP) -> None:
    """Register all search tools with the MCP server."""

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_search_results(
        query: SearchQuery,
        date: SearchDate = None,
        order: Order = None,
        results: ResultLimit = None,
    ) -> dict[str, Any]:
        """Full-text search of the eCFR.

        WHAT: Run a full-text search over the regulations.
        WHEN: Use to find where a topic or citation appears, e.g. '21 CFR 1306.04'.
        RETURNS: Search hits with hierarchy, headings and structure_index values.

        Parameters:
            query (str): Search string
            date (Optional[str]): YYYY-MM-DD or 'current' (default: 'current')
            order (Optional[str]): relevance | newest | oldest (default: relevance)
            results (Optional[int]): Maximum hits, 1-1000 (default: 50)
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.search_results(client, query, date, order, results)
        except Exception as e:
            raise_tool_error(
                "ecfr_search_results", "Error calling eCFR search results API", e, {"query": query}
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_search_summary(
        query: SearchQuery,
        date: SearchDate = None,
        order: Order = None,
    ) -> dict[str, Any]:
        """Aggregated summary (counts) of eCFR search results.

        Parameters:
            query (str): Search string, e.g. 'opioid prescribing requirements'
            date (Optional[str]): YYYY-MM-DD or 'current' (default: 'current')
            order (Optional[str]): relevance | newest | oldest (default: relevance)
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.search_summary(client, query, date, order)
        except Exception as e:
            raise_tool_error(
                "ecfr_search_summary", "Error calling eCFR search summary API", e, {"query": query}
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_search_with_date_range(
        query: SearchQuery,
        title: OptionalTitleNumber = None,
        start_date: OptionalDate = None,
        end_date: OptionalDate = None,
        results: ResultLimit = None,
        order: Order = None,
    ) -> dict[str, Any]:
        """Search the eCFR and keep hits from one title whose effective window overlaps a date range.

        A hit without starts_on/ends_on is treated as always in effect.

        Parameters:
            query (str): Search string, e.g. 'telemedicine prescribing'
            title (Optional[int]): Keep only hits from this title
            start_date (Optional[str]): Window start, YYYY-MM-DD
            end_date (Optional[str]): Window end, YYYY-MM-DD
            results (Optional[int]): Maximum hits requested, 1-1000 (default: 50)
            order (Optional[str]): relevance | newest | oldest (default: relevance)
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.search_with_date_range(
                    client, query, title, start_date, end_date, results, order
                )
        except Exception as e:
            raise_tool_error(
                "ecfr_search_with_date_range",
                "Error calling eCFR search with date range",
                e,
                {"query": query, "start_date": start_date, "end_date": end_date},
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_section_content(
        title: TitleNumber,
        date: SnapshotDate,
        section: OptionalSection = None,
        part: OptionalPart = None,
        structure_index: StructureIndex = None,
    ) -> dict[str, Any] | str:
        """Fetch the content of one CFR section at a date.

        WHAT: Retrieve the text of a single section.
        WHEN: Use after locating a section, e.g. "show me 21 CFR 1306.04 as of 2024-06-01".
        RETURNS: Content with heading, citation and hierarchy, or raw XML if the
        content endpoint is unavailable.

        Provide either structure_index (from search results) or section; the
        index is resolved through search when only the section is given.

        Parameters:
            title (int): CFR title number (1-50)
            date (str): YYYY-MM-DD
            section (Optional[str]): Section number, e.g. '1306.04'
            part (Optional[str]): Part number, e.g. '1306'
            structure_index (Optional[int]): Known structure index
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_section_content(
                    client,
                    title,
                    date,
                    section,
                    part,
                    structure_index,
                    search_results=get_settings().section_search_results,
                )
        except Exception as e:
            raise_tool_error(
                "ecfr_get_section_content",
                "Error fetching eCFR section content",
                e,
                {"title": title, "date": date, "section": section, "part": part},
            )
