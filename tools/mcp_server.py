# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (all tools wired in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds the FastMCP server and registers every tool the gateway exposes.
#   Tool bodies here stay thin: they build a URL or a payload and hand it to
#   core/, while tools/invocation.py wraps each one with rate limiting,
#   usage stats, context resolution, error normalization and timing.
#
# THE CATALOGUE:
#   search_engine          SERP scrape (google | bing | yandex), markdown
#   scrape_as_markdown     universal scrape, markdown      (tools/registry.py)
#   scrape_as_html         universal scrape, raw HTML      (tools/registry.py)
#   search / fetch         deep-research pair, JSON documents
#   session_stats          usage counters for this process
#   web_data_*             one per dataset, trigger + poll (tools/registry.py)
#   scraping_browser_*     remote browser                  (tools/browser_tools.py)
#
# RUNNING THIS SERVER:
#   main.py builds the gate and the server, then serves it over HTTP (the
#   default) or stdio.  Nothing here starts a server on import.
# =============================================================================

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Annotated, Any, Awaitable, Callable, Literal, Optional

from fastmcp import FastMCP
from pydantic import Field

from core.config import SERVER_NAME
from core.datasets import DATASETS
from core.models import DatasetSpec, ToolContext
from core.poller import MAX_ATTEMPTS
from core.search import build_fetch_document, build_search_url, parse_organic_results
from tools.browser_tools import register_browser_tools
from tools.invocation import ToolGate, log_status
from tools.registry import UrlStr, register_dataset_tools, register_scrape_tools


# =============================================================================
# Logging Setup
# =============================================================================
# STDERR only: with the stdio transport, stdout IS the protocol stream and
# a stray log line there would corrupt it.
# =============================================================================
def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def create_server(
    gate: ToolGate,
    datasets: list[DatasetSpec] = DATASETS,
    max_attempts: int = MAX_ATTEMPTS,
    poll_sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> FastMCP:
    """Build the FastMCP server with every tool routed through ``gate``."""

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        try:
            yield
        finally:
            await gate.aclose()

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)

    # =========================================================================
    # search_engine
    # =========================================================================
    @mcp.tool()
    @gate.tool()
    async def search_engine(
        call: ToolContext,
        query: str,
        engine: Literal["google", "bing", "yandex"] = "google",
        cursor: Annotated[
            Optional[str], Field(description="Pagination cursor for next page")
        ] = None,
    ) -> str:
        """Scrape search results from Google, Bing or Yandex. Returns SERP
        results in markdown (URL, title, description)"""
        url = build_search_url(engine, query, cursor)
        return await call.upstream.request(url, call.unlocker_zone, markdown=True)

    # =========================================================================
    # scrape_as_markdown / scrape_as_html  (declarative, see registry.py)
    # =========================================================================
    register_scrape_tools(mcp, gate)

    # =========================================================================
    # search / fetch — the deep-research pair
    # =========================================================================
    # search returns documents as {id, title, text, url}; fetch takes one of
    # those ids (a URL) and returns the full page in the same shape.
    # =========================================================================
    @mcp.tool()
    @gate.tool()
    async def search(
        call: ToolContext,
        query: Annotated[str, Field(description="Search query string")],
    ) -> str:
        """Search for relevant documents and return a list of search results
        for deep research"""
        url = f"{build_search_url('google', query, 0)}&brd_json=1"
        raw = await call.upstream.request(url, call.unlocker_zone)
        log_status(call.tool_name, f"raw response length: {len(raw)}")
        results = parse_organic_results(raw)
        log_status(call.tool_name, f"returning {len(results)} results")
        return json.dumps(results)

    @mcp.tool()
    @gate.tool()
    async def fetch(
        call: ToolContext,
        id: Annotated[UrlStr, Field(
            description="URL of the document to fetch and return full content"
        )],
    ) -> str:
        """Retrieve the full content of a document by its URL for deep research"""
        content = await call.upstream.request(id, call.unlocker_zone, markdown=True)
        return json.dumps(build_fetch_document(id, content))

    # =========================================================================
    # session_stats
    # =========================================================================
    @mcp.tool()
    @gate.tool()
    async def session_stats(call: ToolContext) -> str:
        """Tell the user about the tool usage during this session"""
        return gate.usage.report()

    # =========================================================================
    # web_data_* and scraping_browser_*
    # =========================================================================
    register_dataset_tools(
        mcp, gate, datasets=datasets, max_attempts=max_attempts, sleep=poll_sleep
    )
    register_browser_tools(mcp, gate)

    return mcp
