"""
End-to-end tests through the MCP protocol, using FastMCP's in-memory client.
"""

import json

import httpx
import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from core.datasets import DATASETS
from tools.mcp_server import create_server


async def no_sleep(seconds):
    return None


@pytest.fixture
def server(gate):
    return create_server(gate, poll_sleep=no_sleep)


class TestCatalogue:

    @pytest.mark.asyncio
    async def test_lists_every_tool(self, server):
        async with Client(server) as client:
            names = {tool.name for tool in await client.list_tools()}

        expected = {
            "search_engine",
            "scrape_as_markdown",
            "scrape_as_html",
            "search",
            "fetch",
            "session_stats",
            "scraping_browser_navigate",
            "scraping_browser_get_text",
        }
        assert expected <= names
        assert {spec.tool_name for spec in DATASETS} <= names

    @pytest.mark.asyncio
    async def test_tool_context_is_not_part_of_the_schema(self, server):
        async with Client(server) as client:
            tools = {tool.name: tool for tool in await client.list_tools()}

        properties = tools["scrape_as_html"].inputSchema["properties"]
        assert set(properties) == {"url"}

    @pytest.mark.asyncio
    async def test_dataset_schema_follows_catalogue_row(self, server):
        async with Client(server) as client:
            tools = {tool.name: tool for tool in await client.list_tools()}

        schema = tools["web_data_amazon_product_search"].inputSchema
        assert set(schema["properties"]) == {"keyword", "url", "pages_to_search"}
        assert set(schema["required"]) == {"keyword", "url"}
        assert schema["properties"]["pages_to_search"]["default"] == "1"

    def test_dataset_ids_are_unique(self):
        assert len({spec.tool_name for spec in DATASETS}) == len(DATASETS)
        amazon = next(spec for spec in DATASETS if spec.id == "amazon_product")
        assert amazon.dataset_id == "gd_l7q7dkf244hwjntr0"


class TestToolCalls:

    @pytest.mark.asyncio
    async def test_scrape_as_html(self, server, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="<h1>hi</h1>"))

        async with Client(server) as client:
            result = await client.call_tool("scrape_as_html", {"url": "https://a.test/"})

        assert result.content[0].text == "<h1>hi</h1>"
        body = json.loads(upstream.requests[0].content)
        assert body == {"url": "https://a.test/", "zone": "mcp_unlocker", "format": "raw"}

    @pytest.mark.asyncio
    async def test_scrape_as_markdown_asks_for_markdown(self, server, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="# hi"))

        async with Client(server) as client:
            await client.call_tool("scrape_as_markdown", {"url": "https://a.test/"})

        assert json.loads(upstream.requests[0].content)["data_format"] == "markdown"

    @pytest.mark.asyncio
    async def test_invalid_url_is_rejected_before_upstream(self, server, upstream):
        async with Client(server) as client:
            with pytest.raises(ToolError):
                await client.call_tool("scrape_as_html", {"url": "not a url"})

        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_upstream_failure_reaches_the_client(self, server, upstream):
        upstream.add("POST", "/request", httpx.Response(502, text="zone offline"))

        async with Client(server) as client:
            with pytest.raises(ToolError, match="HTTP 502: zone offline"):
                await client.call_tool("scrape_as_html", {"url": "https://a.test/"})

    @pytest.mark.asyncio
    async def test_search_engine_builds_serp_url(self, server, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="1. result"))

        async with Client(server) as client:
            await client.call_tool(
                "search_engine", {"query": "cats", "engine": "bing", "cursor": "2"}
            )

        body = json.loads(upstream.requests[0].content)
        assert body["url"].startswith("https://www.bing.com/search?q=cats")
        assert "first=21" in body["url"]

    @pytest.mark.asyncio
    async def test_search_returns_documents(self, server, upstream):
        serp = {"organic": [{"link": "https://a.test", "title": "A", "description": "d"}]}
        upstream.add("POST", "/request", httpx.Response(200, json=serp))

        async with Client(server) as client:
            result = await client.call_tool("search", {"query": "cats"})

        assert json.loads(result.content[0].text) == [
            {"id": "https://a.test", "title": "A", "text": "d", "url": "https://a.test"}
        ]
        assert json.loads(upstream.requests[0].content)["url"].endswith("&brd_json=1")

    @pytest.mark.asyncio
    async def test_fetch_returns_document(self, server, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="# Title\nbody"))

        async with Client(server) as client:
            result = await client.call_tool("fetch", {"id": "https://a.test/page"})

        doc = json.loads(result.content[0].text)
        assert doc["id"] == "https://a.test/page"
        assert doc["title"] == "Title"
        assert doc["metadata"]["content_type"] == "markdown"

    @pytest.mark.asyncio
    async def test_session_stats_reports_usage(self, server, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="ok"))

        async with Client(server) as client:
            for _ in range(2):
                await client.call_tool("scrape_as_html", {"url": "https://a.test/"})
            result = await client.call_tool("session_stats", {})

        report = result.content[0].text
        assert "- scrape_as_html tool: called 2 times" in report
        assert "Total calls: 3" in report

    @pytest.mark.asyncio
    async def test_dataset_tool_triggers_and_polls(self, server, upstream):
        upstream.add("POST", "/datasets/v3/trigger", httpx.Response(200, json={"snapshot_id": "s_1"}))
        upstream.add(
            "GET", "/datasets/v3/snapshot/s_1",
            httpx.Response(200, json={"status": "running"}),
            httpx.Response(200, json=[{"title": "Widget"}]),
        )

        async with Client(server) as client:
            result = await client.call_tool(
                "web_data_amazon_product_search",
                {"keyword": "widget", "url": "https://www.amazon.com"},
            )

        assert json.loads(result.content[0].text) == [{"title": "Widget"}]
        trigger = json.loads(upstream.requests[0].content)
        assert trigger == [
            {"keyword": "widget", "url": "https://www.amazon.com", "pages_to_search": "1"}
        ]
        assert upstream.calls("GET", "/datasets/v3/snapshot/s_1") == 2

    @pytest.mark.asyncio
    async def test_browser_tool_without_zone_fails_fast(self, server, upstream):
        async with Client(server) as client:
            with pytest.raises(ToolError, match="browser=ZONE_NAME"):
                await client.call_tool("scraping_browser_navigate", {"url": "https://a.test/"})

        assert upstream.requests == []
