# =============================================================================
# tools/browser_tools.py  —  Remote Browser Tools
# =============================================================================
#
# Interactive tools that drive a remote browser page (core/browser.py).
# All of them are registered with requires_browser=True, so a caller whose
# session has no browser zone gets an actionable error before we open any
# connection upstream.
#
# The page persists between calls: navigate, then click, then get_text all
# act on the same tab.
# =============================================================================

import json
from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from core.models import ToolContext
from tools.invocation import ToolGate, log_status
from tools.registry import UrlStr


_LINKS_SCRIPT = """
() => Array.from(document.querySelectorAll('a')).map((el, i) => {
    const id = el.id ? '#' + el.id : null;
    return {
        text: (el.innerText || '').trim(),
        href: el.href,
        selector: id || `a:nth-of-type(${i + 1})`,
    };
})
"""


def register_browser_tools(mcp: FastMCP, gate: ToolGate) -> list[str]:
    async def page_for(call: ToolContext):
        return await gate.browsers.page_for(call.upstream, call.browser_zone)

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_navigate(call: ToolContext, url: UrlStr) -> str:
        """Navigate the scraping browser to a new URL."""
        page = await page_for(call)
        await page.goto(url, timeout=120_000, wait_until="domcontentloaded")
        log_status(call.tool_name, f"navigated to {page.url}")
        return f"Successfully navigated to {url}\nTitle: {await page.title()}\nURL: {page.url}"

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_go_back(call: ToolContext) -> str:
        """Go back to the previous page."""
        page = await page_for(call)
        await page.go_back()
        return f"Successfully navigated back\nTitle: {await page.title()}\nURL: {page.url}"

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_go_forward(call: ToolContext) -> str:
        """Go forward to the next page."""
        page = await page_for(call)
        await page.go_forward()
        return f"Successfully navigated forward\nTitle: {await page.title()}\nURL: {page.url}"

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_links(call: ToolContext) -> str:
        """Get all links on the current page, with text, href and a CSS selector.

        Use this to find elements you want to interact with, then pass the
        selector to scraping_browser_click.
        """
        page = await page_for(call)
        return json.dumps(await page.evaluate(_LINKS_SCRIPT), indent=2)

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_click(
        call: ToolContext,
        selector: Annotated[str, Field(description="CSS selector of the element to click")],
    ) -> str:
        """Click on an element of the current page."""
        page = await page_for(call)
        await page.click(selector, timeout=5000)
        return f"Successfully clicked element: {selector}"

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_type(
        call: ToolContext,
        selector: Annotated[str, Field(description="CSS selector of the input")],
        text: Annotated[str, Field(description="Text to type")],
        submit: Annotated[bool, Field(description="Press Enter after typing")] = False,
    ) -> str:
        """Type text into an element of the current page."""
        page = await page_for(call)
        await page.fill(selector, text)
        if submit:
            await page.press(selector, "Enter")
        suffix = " and submitted the form" if submit else ""
        return f'Successfully typed "{text}" into element: {selector}{suffix}'

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_wait_for(
        call: ToolContext,
        selector: Annotated[str, Field(description="CSS selector to wait for")],
        timeout: Annotated[int, Field(description="Maximum time to wait in milliseconds")] = 30_000,
    ) -> str:
        """Wait for an element to be visible on the current page."""
        page = await page_for(call)
        await page.wait_for_selector(selector, timeout=timeout)
        return f"Successfully waited for element: {selector}"

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_get_text(call: ToolContext) -> str:
        """Get the text content of the current page."""
        page = await page_for(call)
        return await page.inner_text("body")

    @mcp.tool()
    @gate.tool(requires_browser=True)
    async def scraping_browser_get_html(
        call: ToolContext,
        full_page: Annotated[bool, Field(
            description="Return the whole document including <head> and scripts"
        )] = False,
    ) -> str:
        """Get the HTML content of the current page.

        Without full_page only the <body> is returned, which is usually all
        you need and much smaller.
        """
        page = await page_for(call)
        if full_page:
            return await page.content()
        return await page.inner_html("body")

    return [
        "scraping_browser_navigate",
        "scraping_browser_go_back",
        "scraping_browser_go_forward",
        "scraping_browser_links",
        "scraping_browser_click",
        "scraping_browser_type",
        "scraping_browser_wait_for",
        "scraping_browser_get_text",
        "scraping_browser_get_html",
    ]
