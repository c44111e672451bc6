# =============================================================================
# core/browser.py  —  Remote Browser Sessions
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Browser tools drive a real browser hosted upstream, reached over the
#   Chrome DevTools Protocol.  Playwright's connect_over_cdp() does the
#   heavy lifting; we only work out WHERE to connect and keep one page
#   alive per (credential, browser zone) so consecutive tool calls act on
#   the same tab.
#
# THE CDP ENDPOINT:
#   wss://brd-customer-<customer>-zone-<zone>:<password>@brd.superproxy.io:9222
#     customer → GET /status
#     password → GET /zone/passwords?zone=<zone>  (first entry)
#
# LIFETIME:
#   Sessions live until the process shuts down; BrowserSessionManager.close()
#   is wired into the server lifespan.
# =============================================================================

import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

from core.upstream import UpstreamClient


logger = logging.getLogger(__name__)

CDP_HOST = "brd.superproxy.io:9222"


async def build_cdp_endpoint(upstream: UpstreamClient, zone: str) -> str:
    customer = await upstream.get_customer_id()
    password = await upstream.get_zone_password(zone)
    return f"wss://brd-customer-{customer}-zone-{zone}:{password}@{CDP_HOST}"


class BrowserSession:
    """One remote browser connection and the page we keep driving.

    Connecting and page creation happen under the session's own lock, so
    concurrent first calls share one Playwright instance.
    """

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._lock = asyncio.Lock()

    async def page(self) -> Page:
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                await self._disconnect()
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.connect_over_cdp(
                    self.endpoint
                )
                logger.info("Connected to remote browser")
            if self._page is None or self._page.is_closed():
                contexts = self._browser.contexts
                context = contexts[0] if contexts else await self._browser.new_context()
                self._page = context.pages[0] if context.pages else await context.new_page()
            return self._page

    async def close(self) -> None:
        async with self._lock:
            await self._disconnect()

    async def _disconnect(self) -> None:
        # Caller holds self._lock.
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._playwright = self._browser = self._page = None


class BrowserSessionManager:
    """Hands out one BrowserSession per (credential, zone) pair."""

    def __init__(self):
        self._sessions: dict[tuple[str, str], BrowserSession] = {}
        self._lock = asyncio.Lock()

    async def page_for(self, upstream: UpstreamClient, zone: str) -> Page:
        key = (upstream.api_token, zone)
        async with self._lock:
            session = self._sessions.get(key)
            if session is None:
                endpoint = await build_cdp_endpoint(upstream, zone)
                session = BrowserSession(endpoint)
                self._sessions[key] = session
        return await session.page()

    async def close(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
