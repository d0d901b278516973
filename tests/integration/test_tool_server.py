"""Integration tests for the eCFR MCP tool server.

Tools are listed and invoked through the FastMCP server object, with the
client factory pointed at the in-process fake eCFR API.
"""

import json

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from ecfr_mcp import __version__
from ecfr_mcp.ecfr_tool_server import health
from ecfr_mcp.ecfr_tool_server import main
from ecfr_mcp.ecfr_tool_server import mcp_server
from ecfr_mcp.ecfr_tool_server import metrics
from ecfr_mcp.logger_config import error_logger

from ..shared.fake_ecfr_api import SEARCH_RESULTS_PATH
from ..shared.fake_ecfr_api import TITLES_PATH
from ..shared.fake_ecfr_api import full_xml_path
from ..shared.fake_ecfr_api import structure_path
from ..shared.structure_data import part_node
from ..shared.structure_data import search_hit
from ..shared.structure_data import section_node
from ..shared.structure_data import title_structure
from ..shared.structure_data import titles_listing

pytestmark = pytest.mark.integration

EXPECTED_TOOLS = {
    "ecfr_search_results",
    "ecfr_search_summary",
    "ecfr_search_with_date_range",
    "ecfr_get_section_content",
    "ecfr_list_titles",
    "ecfr_list_agencies",
    "ecfr_get_corrections",
    "ecfr_get_title_versions",
    "ecfr_get_title_structure",
    "ecfr_get_title_ancestry",
    "ecfr_get_title_xml",
    "ecfr_get_part_xml",
    "ecfr_compare_title_dates",
    "ecfr_get_recent_changes",
}


def _text(result) -> str:
    """Text of the first content block of a call_tool result."""
    content = result[0] if isinstance(result, tuple) else result
    return content[0].text


async def _call_json(name: str, arguments: dict):
    return json.loads(_text(await mcp_server.call_tool(name, arguments)))


async def _tools_by_name():
    return {tool.name: tool for tool in await mcp_server.list_tools()}


class TestToolRegistration:
    @pytest.mark.asyncio
    async def test_all_tools_are_registered(self):
        assert set(await _tools_by_name()) == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_compare_schema(self):
        schema = (await _tools_by_name())["ecfr_compare_title_dates"].inputSchema

        assert sorted(schema["required"]) == ["end_date", "start_date", "title"]
        assert schema["properties"]["title"]["minimum"] == 1
        assert schema["properties"]["title"]["maximum"] == 50
        change_types = json.dumps(schema["properties"]["change_types"])
        for change_type in ("added", "removed", "modified", "effective", "cross_reference"):
            assert change_type in change_types

    @pytest.mark.asyncio
    async def test_recent_changes_schema(self):
        schema = (await _tools_by_name())["ecfr_get_recent_changes"].inputSchema
        assert schema["required"] == ["title"]
        assert set(schema["properties"]) == {"title", "days", "part", "end_date", "change_types"}

    @pytest.mark.asyncio
    async def test_tools_have_descriptions(self):
        for tool in (await _tools_by_name()).values():
            assert tool.description, tool.name


class TestComparisonTools:
    @pytest.mark.asyncio
    async def test_compare_title_dates(self, patch_client_factory):
        api = patch_client_factory
        api.add_json(TITLES_PATH, titles_listing((21, "2025-01-01")))
        api.add_json(
            structure_path("2024-01-01", 21),
            title_structure(part_node("1306", section_node("1306.04", "A", reserved=False))),
        )
        api.add_json(
            structure_path("2025-01-01", 21),
            title_structure(
                part_node("1306", section_node("1306.04", "A", reserved=True), section_node("1306.05", "B"))
            ),
        )

        payload = await _call_json(
            "ecfr_compare_title_dates",
            {"title": 21, "start_date": "2024-01-01", "end_date": "2025-06-01"},
        )

        assert payload["params"]["end_date"] == "2025-01-01"
        assert payload["summary"] == {
            "total_changes": 2,
            "sections_added": 1,
            "sections_removed": 0,
            "sections_modified": 1,
        }
        added, modified = payload["changes"]
        assert added["type"] == "added"
        assert added["citation"] == "21 CFR 1306.05"
        assert modified["type"] == "modified"
        assert modified["start_metadata"]["reserved"] is False
        assert modified["end_metadata"]["reserved"] is True

    @pytest.mark.asyncio
    async def test_change_type_filter(self, patch_client_factory):
        api = patch_client_factory
        api.add_json(TITLES_PATH, titles_listing((21, "2025-01-01")))
        api.add_json(structure_path("2024-01-01", 21), title_structure(part_node("1", section_node("1.1"))))
        api.add_json(structure_path("2025-01-01", 21), title_structure(part_node("1", section_node("1.2"))))

        payload = await _call_json(
            "ecfr_compare_title_dates",
            {
                "title": 21,
                "start_date": "2024-01-01",
                "end_date": "2025-01-01",
                "change_types": ["effective"],
            },
        )

        assert payload["changes"] == []
        assert payload["summary"]["total_changes"] == 0

    @pytest.mark.asyncio
    async def test_recent_changes_defaults_to_180_days(self, patch_client_factory):
        api = patch_client_factory
        api.add_json(TITLES_PATH, titles_listing((21, "2025-01-01")))
        api.add_json(structure_path("2024-07-05", 21), title_structure())
        api.add_json(structure_path("2025-01-01", 21), title_structure())

        payload = await _call_json("ecfr_get_recent_changes", {"title": 21, "end_date": "2025-01-01"})

        assert payload["params"]["days"] == 180
        assert payload["params"]["start_date"] == "2024-07-05"

    @pytest.mark.asyncio
    async def test_upstream_failure_is_a_tool_error(self, patch_client_factory):
        api = patch_client_factory
        api.add_json(TITLES_PATH, titles_listing((21, "2025-01-01")))
        api.add_text(structure_path("2024-01-01", 21), "Title not found", status_code=404)
        api.add_json(structure_path("2025-01-01", 21), title_structure())

        with pytest.raises(ToolError) as exc_info:
            await mcp_server.call_tool(
                "ecfr_compare_title_dates",
                {"title": 21, "start_date": "2024-01-01", "end_date": "2025-01-01"},
            )

        message = str(exc_info.value)
        assert "Error comparing eCFR title snapshots" in message
        assert "HTTP 404 Not Found" in message
        assert "Title not found" in message

    @pytest.mark.asyncio
    async def test_failed_call_writes_one_error_record(self, patch_client_factory, mocker):
        api = patch_client_factory
        api.add_json(TITLES_PATH, titles_listing((21, "2025-01-01")))
        api.add_text(structure_path("2024-01-01", 21), "Title not found", status_code=404)
        api.add_json(structure_path("2025-01-01", 21), title_structure())
        log = mocker.patch.object(error_logger, "log")

        with pytest.raises(ToolError):
            await mcp_server.call_tool(
                "ecfr_compare_title_dates",
                {"title": 21, "start_date": "2024-01-01", "end_date": "2025-01-01"},
            )

        log.assert_called_once()
        assert log.call_args.kwargs["extra"]["error_code"] == "UPSTREAM_HTTP_ERROR"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arguments",
        [
            {"title": 0, "start_date": "2024-01-01", "end_date": "2025-01-01"},
            {"title": 51, "start_date": "2024-01-01", "end_date": "2025-01-01"},
            {"title": 21, "start_date": "2024-01-01", "end_date": "2025-01-01", "change_types": ["renamed"]},
            {"title": 21, "start_date": "2024-01-01"},
        ],
    )
    async def test_invalid_arguments_never_reach_upstream(self, patch_client_factory, arguments):
        with pytest.raises(ToolError):
            await mcp_server.call_tool("ecfr_compare_title_dates", arguments)
        assert patch_client_factory.requests == []

    @pytest.mark.asyncio
    async def test_zero_days_rejected_by_schema(self, patch_client_factory):
        with pytest.raises(ToolError):
            await mcp_server.call_tool("ecfr_get_recent_changes", {"title": 21, "days": 0})
        assert patch_client_factory.requests == []


class TestPassThroughTools:
    @pytest.mark.asyncio
    async def test_search_results(self, patch_client_factory):
        patch_client_factory.add_json(SEARCH_RESULTS_PATH, {"results": [search_hit("21", "1306", "1306.04", 4)]})

        payload = await _call_json("ecfr_search_results", {"query": "21 CFR 1306.04", "results": 5})

        assert payload["params"]["results"] == 5
        assert payload["data"]["results"][0]["structure_index"] == 4

    @pytest.mark.asyncio
    async def test_part_xml_is_returned_verbatim(self, patch_client_factory):
        patch_client_factory.add_text(
            full_xml_path("2024-01-01", 21), "<DIV5 N='1306'>...</DIV5>", content_type="application/xml"
        )

        result = await mcp_server.call_tool(
            "ecfr_get_part_xml", {"date": "2024-01-01", "title": 21, "part": "1306"}
        )

        assert _text(result) == "<DIV5 N='1306'>...</DIV5>"

    @pytest.mark.asyncio
    async def test_list_titles(self, patch_client_factory):
        patch_client_factory.add_json(TITLES_PATH, titles_listing((1, "2025-01-01"), (21, "2025-01-02")))

        payload = await _call_json("ecfr_list_titles", {})

        assert [title["number"] for title in payload["data"]["titles"]] == [1, 21]

    @pytest.mark.asyncio
    async def test_section_content_without_locator_is_a_tool_error(self, patch_client_factory):
        with pytest.raises(ToolError) as exc_info:
            await mcp_server.call_tool("ecfr_get_section_content", {"title": 21, "date": "2024-01-01"})

        assert "structure_index" in str(exc_info.value)


class TestServerRoutes:
    @pytest.mark.asyncio
    async def test_health(self):
        response = await health(None)
        body = json.loads(response.body)
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert body["metrics"] == {"status": "disabled"}

    @pytest.mark.asyncio
    async def test_metrics_when_disabled(self):
        response = await metrics(None)
        assert response.body == b"# Metrics not available\n"


class TestMain:
    def test_sse_transport_uses_host_and_port(self, monkeypatch, mocker):
        run = mocker.patch.object(mcp_server, "run")
        monkeypatch.setattr(mcp_server.settings, "host", mcp_server.settings.host)
        monkeypatch.setattr(mcp_server.settings, "port", mcp_server.settings.port)
        monkeypatch.setattr("sys.argv", ["ecfr-mcp", "sse", "--host", "0.0.0.0", "--port", "4010"])

        main()

        run.assert_called_once_with(transport="sse")
        assert mcp_server.settings.host == "0.0.0.0"
        assert mcp_server.settings.port == 4010

    def test_stdio_is_the_default(self, monkeypatch, mocker):
        run = mocker.patch.object(mcp_server, "run")
        monkeypatch.setattr("sys.argv", ["ecfr-mcp"])

        main()

        run.assert_called_once_with(transport="stdio")
