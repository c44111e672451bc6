# =============================================================================
# tools/http_auth.py  —  HTTP Transport Glue (authentication + CORS)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Puts the Session Authenticator in front of the MCP HTTP endpoint.
#
#   request ──► CORS ──► SessionAuthMiddleware ──► FastMCP
#                              │
#                              ├─ no/bad token → 401 {"error", "reason"}
#                              └─ ok → scope["state"]["session"] = Session
#                                      (bound to the mcp-session-id)
#
#   Tools never see headers.  They ask current_session(), which reads the
#   Session back from the HTTP request FastMCP is currently serving.
#
# WHY A PURE ASGI MIDDLEWARE?
#   The MCP endpoint streams responses.  A plain ASGI callable passes the
#   stream straight through instead of buffering it.
# =============================================================================

import logging
from typing import Optional

from fastmcp import FastMCP
from fastmcp.server.dependencies import get_http_request
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.auth import SESSION_HEADER, SessionAuthenticator
from core.errors import AuthError
from core.models import Session
from tools.invocation import ToolGate


def current_session() -> Optional[Session]:
    """The Session attached to the HTTP request being served, if any."""
    try:
        request = get_http_request()
    except RuntimeError:
        return None
    return getattr(request.state, "session", None)


class SessionAuthMiddleware:
    """Authenticate HTTP requests and attach the caller's Session.

    The Session of the request that opens an MCP session is bound to the
    ``mcp-session-id`` the server hands back; the rest of that MCP session
    reuses it.  A DELETE ends the MCP session and drops the binding.
    """

    def __init__(self, app: ASGIApp, authenticator: SessionAuthenticator):
        self.app = app
        self.authenticator = authenticator

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        if request.method == "OPTIONS":
            await self.app(scope, receive, send)
            return

        try:
            session = await self.authenticator.authenticate(
                request.headers, request.query_params
            )
        except AuthError as exc:
            logging.warning(f"Authentication failed: {exc.reason}")
            response = JSONResponse(
                {"error": "unauthorized", "reason": exc.reason},
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )
            await response(scope, receive, send)
            return

        scope.setdefault("state", {})["session"] = session
        session_id = request.headers.get(SESSION_HEADER)

        async def send_and_bind(message: Message) -> None:
            if message["type"] == "http.response.start" and message["status"] < 400:
                for name, value in message.get("headers", []):
                    if name.lower() == SESSION_HEADER.encode():
                        self.authenticator.bind(value.decode("latin-1"), session)
            await send(message)

        await self.app(scope, receive, send_and_bind)

        if request.method == "DELETE" and session_id is not None:
            self.authenticator.forget(session_id)


def create_http_app(mcp: FastMCP, gate: ToolGate) -> Starlette:
    """The ASGI application main.py hands to uvicorn."""
    authenticator = SessionAuthenticator(gate.settings, gate.upstream_for)
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["mcp-session-id"],
        ),
        Middleware(SessionAuthMiddleware, authenticator=authenticator),
    ]
    return mcp.http_app(path=gate.settings.path, middleware=middleware)
