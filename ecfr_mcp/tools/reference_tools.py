"""Reference data tools for the eCFR MCP server.

- ecfr_list_titles: All CFR titles with their latest issue dates
- ecfr_list_agencies: Agencies and the CFR references they own
- ecfr_get_corrections: Correction notices, optionally filtered
- ecfr_get_title_versions: Issue dates available for a title
"""

from typing import Annotated
from typing import Any

from mcp.server import FastMCP
from pydantic import Field

from .. import ecfr_client
from .. import lookups
from ..error_handler import raise_tool_error
from ..logger_config import log_mcp_call
from .params import OptionalPart
from .params import OptionalSection
from .params import OptionalTitleNumber
from .params import TitleNumber


def register_reference_tools(mcp_server: FastMCP) -> None:
    """Register all reference data tools with the MCP server."""

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_list_titles() -> dict[str, Any]:
        """List CFR titles with their latest amended and issue dates."""
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.list_titles(client)
        except Exception as e:
            raise_tool_error("ecfr_list_titles", "Error calling eCFR titles endpoint", e)

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_list_agencies() -> dict[str, Any]:
        """List agencies and the CFR titles/chapters they are responsible for."""
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.list_agencies(client)
        except Exception as e:
            raise_tool_error("ecfr_list_agencies", "Error calling eCFR agencies endpoint", e)

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_corrections(
        title: OptionalTitleNumber = None,
        date: Annotated[
            str | None,
            Field(description="Keep corrections whose error_corrected or error_occurred date equals this (YYYY-MM-DD)."),
        ] = None,
        error_corrected_date: Annotated[
            str | None, Field(description="Keep corrections whose error_corrected date equals this (YYYY-MM-DD).")
        ] = None,
    ) -> dict[str, Any]:
        """Fetch eCFR correction notices, optionally filtered by title and date.

        RETURNS: Filtered corrections with total and filtered counts.
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_corrections(client, title, date, error_corrected_date)
        except Exception as e:
            raise_tool_error(
                "ecfr_get_corrections", "Error fetching eCFR corrections", e, {"title": title, "date": date}
            )

    @mcp_server.tool()
    @log_mcp_call
    async def ecfr_get_title_versions(
        title: TitleNumber,
        issue_date_gte: Annotated[
            str | None, Field(description="Keep versions issued on/after this date (YYYY-MM-DD).")
        ] = None,
        issue_date_lte: Annotated[
            str | None, Field(description="Keep versions issued on/before this date (YYYY-MM-DD).")
        ] = None,
        after_date: Annotated[str | None, Field(description="Deprecated alias for issue_date_gte.")] = None,
        before_date: Annotated[str | None, Field(description="Deprecated alias for issue_date_lte.")] = None,
        part: OptionalPart = None,
        section: OptionalSection = None,
    ) -> dict[str, Any]:
        """List the version history (distinct issue dates) of a CFR title.

        Parameters:
            title (int): CFR title number (1-50)
            issue_date_gte / issue_date_lte (Optional[str]): Inclusive issue date bounds
            after_date / before_date (Optional[str]): Aliases for the bounds above
            part (Optional[str]): Drop dates whose representative version is another part
            section (Optional[str]): Drop dates whose representative version is another section
        """
        try:
            async with ecfr_client.create_client() as client:
                return await lookups.get_title_versions(
                    client, title, issue_date_gte, issue_date_lte, after_date, before_date, part, section
                )
        except Exception as e:
            raise_tool_error(
                "ecfr_get_title_versions", "Error fetching eCFR title versions", e, {"title": title}
            )
