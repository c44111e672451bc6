# =============================================================================
# tools/invocation.py  —  Tool Invocation Wrapper
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Every tool the gateway exposes runs through ToolGate.  The gate is the
#   single coordinator that owns the process-wide mutable state (rate-limit
#   window, usage counters, shared HTTP pool, browser sessions) and wraps
#   each tool body in the same pipeline:
#
#     1. rate limit check          → RateLimitError, no retry
#     2. usage counters            → read back by session_stats
#     3. resolve ToolContext       → session first, process defaults if none
#        (+ browser-zone guard for browser tools, before any network call)
#     4. run the tool body
#     5. success                   → result returned untouched
#     6. upstream HTTP failure     → UpstreamHTTPError("HTTP <status>: <body>")
#        anything else             → logged with traceback, re-raised as-is
#     7. always                    → elapsed time logged
#
# HOW A TOOL BODY LOOKS:
#   Tool bodies take a ToolContext as their first argument, then their MCP
#   inputs.  @gate.tool() hides the ToolContext from the published schema
#   and adds the framework's Context parameter instead, so FastMCP sees an
#   ordinary tool signature:
#
#       @mcp.tool()
#       @gate.tool()
#       async def scrape_as_html(call: ToolContext, url: UrlStr) -> str:
#           return await call.upstream.request(url, call.unlocker_zone)
#
# LOGGING:
#   Same colour scheme as the rest of the server log (stderr, never stdout):
#     CYAN   → incoming call + arguments
#     YELLOW → intermediate status
#     GREEN  → response size + timing
#     RED    → failures
# =============================================================================

import inspect
import json
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx
from fastmcp import Context

from core.browser import BrowserSessionManager
from core.config import Settings
from core.errors import AuthError, BrowserZoneError, GatewayError, UpstreamHTTPError
from core.models import Session, ToolContext
from core.rate_limiter import SlidingWindowRateLimiter
from core.upstream import UpstreamClient
from core.usage import UsageStats


# ANSI color codes for terminal output
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_RESET = "\033[0m"

UPSTREAM_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = json.dumps(params, default=str)
    logging.info(f"{_CYAN}[{tool_name}] executing {param_str}{_RESET}")


def log_status(tool_name: str, message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}[{tool_name}]   → {message}{_RESET}")


def _log_response(tool_name: str, result: Any) -> None:
    size = len(result) if isinstance(result, (str, bytes, list, dict)) else 1
    logging.info(f"{_GREEN}[{tool_name}]   ← returned {size} chars{_RESET}")


def _log_error(tool_name: str, message: str, exc_info: bool = False) -> None:
    logging.error(f"{_RED}[{tool_name}] error {message}{_RESET}", exc_info=exc_info)


def _log_duration(tool_name: str, started: float) -> None:
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logging.info(f"{_GREEN}[{tool_name}] tool finished in {elapsed_ms}ms{_RESET}")


def _no_session() -> Optional[Session]:
    return None


def public_signature(fn: Callable) -> inspect.Signature:
    """The signature FastMCP should see for tool body ``fn``.

    Drops the leading ToolContext parameter, makes every input keyword-only
    and appends the framework Context parameter.
    """
    sig = inspect.signature(fn)
    inputs = list(sig.parameters.values())[1:]
    params = [p.replace(kind=inspect.Parameter.KEYWORD_ONLY) for p in inputs]
    params.append(
        inspect.Parameter(
            "ctx", inspect.Parameter.KEYWORD_ONLY, annotation=Context, default=None
        )
    )
    return sig.replace(parameters=params)


class ToolGate:
    """Owns shared state and wraps every tool handler in the call pipeline."""

    def __init__(
        self,
        settings: Settings,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        usage: Optional[UsageStats] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        session_provider: Callable[[], Optional[Session]] = _no_session,
        browsers: Optional[BrowserSessionManager] = None,
    ):
        self.settings = settings
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(settings.rate_limit)
        self.usage = usage or UsageStats()
        self.browsers = browsers or BrowserSessionManager()
        self._http_client = http_client
        self._session_provider = session_provider

    # -------------------------------------------------------------------------
    # Shared resources
    # -------------------------------------------------------------------------
    @property
    def http(self) -> httpx.AsyncClient:
        # Created lazily so it binds to the loop that actually serves requests.
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT)
        return self._http_client

    def upstream_for(self, api_token: str) -> UpstreamClient:
        return UpstreamClient(
            api_token,
            http=self.http,
            base_url=self.settings.api_base_url,
            user_agent=self.settings.user_agent,
        )

    async def aclose(self) -> None:
        await self.browsers.close()
        if self._http_client is not None:
            await self._http_client.aclose()

    # -------------------------------------------------------------------------
    # Context resolution
    # -------------------------------------------------------------------------
    def resolve(
        self,
        tool_name: str,
        ctx: Optional[Context] = None,
        requires_browser: bool = False,
    ) -> ToolContext:
        """Build the ToolContext for one call.

        An established session is authoritative.  Process defaults are used
        only when there is no session at all (e.g. the stdio transport).
        """
        session = self._session_provider()
        if session is not None:
            api_token = session.api_token
            unlocker_zone = session.unlocker_zone
            browser_zone = session.browser_zone
        else:
            api_token = self.settings.api_token
            unlocker_zone = self.settings.default_unlocker_zone
            browser_zone = self.settings.browser_zone

        if not api_token:
            raise AuthError(AuthError.MISSING)
        if requires_browser and not browser_zone:
            raise BrowserZoneError()

        progress = None
        if ctx is not None:
            async def progress(current: int, total: int, message: str) -> None:
                await ctx.report_progress(progress=current, total=total, message=message)

        return ToolContext(
            tool_name=tool_name,
            api_token=api_token,
            unlocker_zone=unlocker_zone,
            browser_zone=browser_zone,
            upstream=self.upstream_for(api_token),
            progress=progress,
        )

    # -------------------------------------------------------------------------
    # The pipeline
    # -------------------------------------------------------------------------
    async def invoke(
        self,
        tool_name: str,
        fn: Callable[..., Awaitable[Any]],
        arguments: dict[str, Any],
        ctx: Optional[Context] = None,
        requires_browser: bool = False,
    ) -> Any:
        started = time.perf_counter()
        _log_request(tool_name, **arguments)
        try:
            self.rate_limiter.check()
            self.usage.record(tool_name)
            call = self.resolve(tool_name, ctx, requires_browser)
            result = await fn(call, **arguments)
            _log_response(tool_name, result)
            return result
        except httpx.HTTPStatusError as exc:
            response = exc.response
            _log_error(
                tool_name,
                f"{response.status_code} {response.reason_phrase}: {response.text}",
            )
            raise UpstreamHTTPError(
                response.status_code, response.text, response.reason_phrase
            ) from exc
        except GatewayError as exc:
            _log_error(tool_name, str(exc))
            raise
        except Exception as exc:
            _log_error(tool_name, repr(exc), exc_info=True)
            raise
        finally:
            _log_duration(tool_name, started)

    def tool(
        self, name: Optional[str] = None, requires_browser: bool = False
    ) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
        """Decorator turning a tool body into a FastMCP-ready handler."""

        def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
            tool_name = name or fn.__name__
            signature = public_signature(fn)

            async def handler(**kwargs):
                ctx = kwargs.pop("ctx", None)
                return await self.invoke(tool_name, fn, kwargs, ctx, requires_browser)

            handler.__name__ = handler.__qualname__ = tool_name
            handler.__doc__ = fn.__doc__
            handler.__signature__ = signature
            handler.__annotations__ = {
                p.name: p.annotation
                for p in signature.parameters.values()
                if p.annotation is not inspect.Parameter.empty
            }
            if signature.return_annotation is not inspect.Signature.empty:
                handler.__annotations__["return"] = signature.return_annotation
            return handler

        return decorator
