"""
Unit tests for the tool invocation wrapper (ToolGate).
"""

import inspect

import httpx
import pytest
from fastmcp import Context

from core.config import Settings
from core.errors import (
    AuthError,
    BrowserZoneError,
    RateLimitError,
    UpstreamHTTPError,
)
from core.models import RateLimitConfig, Session, ToolContext
from core.rate_limiter import SlidingWindowRateLimiter
from tests.conftest import BASE_URL
from tools.invocation import ToolGate, public_signature


async def scrape_as_html(call: ToolContext, url: str) -> str:
    """Scrape a page."""
    return await call.upstream.request(url, call.unlocker_zone)


async def search(call: ToolContext, query: str) -> str:
    return f"results for {query}"


async def whoami(call: ToolContext) -> str:
    return f"{call.api_token}|{call.unlocker_zone}|{call.browser_zone}"


class TestPublicSignature:

    def test_hides_tool_context_and_adds_framework_context(self):
        sig = public_signature(scrape_as_html)

        assert list(sig.parameters) == ["url", "ctx"]
        assert sig.parameters["ctx"].annotation is Context
        assert all(
            p.kind is inspect.Parameter.KEYWORD_ONLY for p in sig.parameters.values()
        )

    def test_handler_keeps_name_and_doc(self, gate):
        handler = gate.tool()(scrape_as_html)

        assert handler.__name__ == "scrape_as_html"
        assert handler.__doc__ == "Scrape a page."
        assert "call" not in inspect.signature(handler).parameters


class TestUsageStats:

    @pytest.mark.asyncio
    async def test_counts_per_tool_and_total(self, gate, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="<html></html>"))
        scrape = gate.tool()(scrape_as_html)
        run_search = gate.tool()(search)

        for _ in range(3):
            await scrape(url="https://a.test")
        await run_search(query="cats")

        assert gate.usage.snapshot() == {"scrape_as_html": 3, "search": 1}
        assert gate.usage.total == 4
        assert "- scrape_as_html tool: called 3 times" in gate.usage.report()


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_rejects_call_over_limit_without_running_tool(self, settings, upstream):
        config = RateLimitConfig(limit=2, window_ms=60_000, display="2/1m")
        gate = ToolGate(
            settings,
            rate_limiter=SlidingWindowRateLimiter(config, clock=lambda: 0.0),
            http_client=upstream.client(),
        )
        upstream.add("POST", "/request", httpx.Response(200, text="ok"))
        scrape = gate.tool()(scrape_as_html)

        await scrape(url="https://a.test")
        await scrape(url="https://a.test")
        with pytest.raises(RateLimitError, match="2/1m"):
            await scrape(url="https://a.test")

        assert upstream.calls("POST", "/request") == 2
        assert gate.usage.total == 2


class TestContextResolution:

    @pytest.mark.asyncio
    async def test_session_is_authoritative(self, upstream):
        settings = Settings(api_token="env-token", unlocker_zone="env_zone", browser_zone="env_browser")
        session = Session(api_token="session-token", unlocker_zone="s_zone", browser_zone="s_browser")
        gate = ToolGate(settings, http_client=upstream.client(), session_provider=lambda: session)

        result = await gate.tool()(whoami)()

        assert result == "session-token|s_zone|s_browser"

    @pytest.mark.asyncio
    async def test_process_defaults_without_session(self, upstream):
        settings = Settings(api_token="env-token", browser_zone="env_browser")
        gate = ToolGate(settings, http_client=upstream.client())

        result = await gate.tool()(whoami)()

        assert result == "env-token|mcp_unlocker|env_browser"

    @pytest.mark.asyncio
    async def test_no_credential_anywhere(self, upstream):
        gate = ToolGate(Settings(), http_client=upstream.client())

        with pytest.raises(AuthError):
            await gate.tool()(whoami)()

    @pytest.mark.asyncio
    async def test_upstream_carries_session_credential(self, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="ok"))
        session = Session(api_token="session-token", unlocker_zone="z1", browser_zone=None)
        gate = ToolGate(
            Settings(api_base_url=BASE_URL),
            http_client=upstream.client(),
            session_provider=lambda: session,
        )

        await gate.tool()(scrape_as_html)(url="https://a.test")

        request = upstream.requests[0]
        assert request.headers["authorization"] == "Bearer session-token"
        assert request.headers["user-agent"].startswith("webdata-gateway/")


class TestBrowserGuard:

    @pytest.mark.asyncio
    async def test_fails_fast_without_browser_zone(self, upstream):
        gate = ToolGate(Settings(api_token="tok"), http_client=upstream.client())
        navigate = gate.tool("scraping_browser_navigate", requires_browser=True)(scrape_as_html)

        with pytest.raises(BrowserZoneError, match="browser=ZONE_NAME"):
            await navigate(url="https://a.test")

        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_session_without_browser_zone(self, upstream):
        session = Session(api_token="tok", unlocker_zone="z", browser_zone=None)
        gate = ToolGate(
            Settings(browser_zone="env_browser"),
            http_client=upstream.client(),
            session_provider=lambda: session,
        )
        tool = gate.tool("scraping_browser_get_text", requires_browser=True)(whoami)

        with pytest.raises(BrowserZoneError):
            await tool()


class TestErrorNormalization:

    @pytest.mark.asyncio
    async def test_http_error_embeds_status_and_body(self, gate, upstream):
        upstream.add("POST", "/request", httpx.Response(403, text="zone is disabled"))

        with pytest.raises(UpstreamHTTPError) as exc_info:
            await gate.tool()(scrape_as_html)(url="https://a.test")

        assert str(exc_info.value) == "HTTP 403: zone is disabled"
        assert exc_info.value.status_code == 403
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_single_call_tools_do_not_retry(self, gate, upstream):
        upstream.add("POST", "/request", httpx.Response(500, text="oops"))

        with pytest.raises(UpstreamHTTPError):
            await gate.tool()(scrape_as_html)(url="https://a.test")

        assert upstream.calls("POST", "/request") == 1

    @pytest.mark.asyncio
    async def test_other_errors_are_reraised_unchanged(self, gate):
        error = KeyError("missing")

        async def broken(call: ToolContext) -> str:
            raise error

        with pytest.raises(KeyError) as exc_info:
            await gate.tool()(broken)()

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_result_is_returned_unchanged(self, gate, upstream):
        upstream.add("POST", "/request", httpx.Response(200, text="<p>exact body</p>"))

        result = await gate.tool()(scrape_as_html)(url="https://a.test")

        assert result == "<p>exact body</p>"
