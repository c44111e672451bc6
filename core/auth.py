# =============================================================================
# core/auth.py  —  Session Authenticator
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns the credential material of an inbound request into a Session:
#
#     Authorization: Bearer <token>     ← wins when present
#     ?token=<token>                    ← fallback
#     ?unlocker=<zone>&browser=<zone>   ← optional zone overrides
#
# ZONE RESOLUTION (per zone):
#     URL override  →  process default (env)  →  hardcoded fallback name
#
# PROVISIONING:
#   After a successful authentication we make sure the unlocker zone exists
#   upstream, creating it if needed.  That call is best-effort: a failure
#   is logged and authentication carries on.  Each (token, zone) pair is
#   checked once per process, whether the check succeeds or not.
#
# ONE SESSION PER MCP SESSION:
#   The Session built for the request that opened an MCP session is bound
#   to its mcp-session-id.  Later requests in that session reuse it as-is;
#   a different token is rejected and zone parameters are ignored.
#
# FRAMEWORK-FREE:
#   Input is plain mappings (headers, query params), output is a Session.
#   The ASGI glue lives in tools/http_auth.py.
# =============================================================================

import logging
import re
from typing import Callable, Mapping, Optional

from core.config import DEFAULT_BROWSER_ZONE, Settings
from core.errors import AuthError
from core.models import Session
from core.upstream import UpstreamClient


logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
ZONE_RE = TOKEN_RE

SESSION_HEADER = "mcp-session-id"

UpstreamFactory = Callable[[str], UpstreamClient]


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def extract_token(
    headers: Mapping[str, str], query: Mapping[str, str]
) -> Optional[str]:
    """Pick the credential out of a request.  Bearer header beats ?token=."""
    auth_header = _header(headers, "authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip()
    return query.get("token") or None


def validate_token(token: Optional[str]) -> str:
    if not token:
        raise AuthError(AuthError.MISSING)
    if not TOKEN_RE.match(token):
        raise AuthError(AuthError.INVALID_FORMAT)
    return token


def _zone_override(query: Mapping[str, str], name: str) -> Optional[str]:
    # Only well-formed zone names are honoured; anything else is ignored.
    value = query.get(name)
    if value and ZONE_RE.match(value):
        return value
    return None

class SessionAuthenticator:
    """Derives a validated Session from inbound credential material.

    A Session is built once per MCP session.  Requests carrying a known
    ``mcp-session-id`` get the bound Session back unchanged; their zone
    parameters are ignored and their token must match the bound one.
    """

    def __init__(self, settings: Settings, upstream_factory: UpstreamFactory):
        self.settings = settings
        self._upstream_factory = upstream_factory
        self._provisioned: set[tuple[str, str]] = set()
        self._sessions: dict[str, Session] = {}

    def resolve_zones(self, query: Mapping[str, str]) -> tuple[str, str]:
        unlocker = _zone_override(query, "unlocker") or self.settings.default_unlocker_zone
        browser = (
            _zone_override(query, "browser")
            or self.settings.browser_zone
            or DEFAULT_BROWSER_ZONE
        )
        return unlocker, browser

    async def authenticate(
        self, headers: Mapping[str, str], query: Mapping[str, str]
    ) -> Session:
        """Validate the request's credential and return its Session.

        Raises:
            AuthError: the credential is missing, malformed, or not the one
                the MCP session was established with.
        """
        token = validate_token(extract_token(headers, query))

        session_id = _header(headers, SESSION_HEADER)
        if session_id is not None:
            bound = self._sessions.get(session_id)
            if bound is not None:
                if bound.api_token != token:
                    raise AuthError(AuthError.SESSION_MISMATCH)
                return bound

        unlocker_zone, browser_zone = self.resolve_zones(query)
        await self.ensure_zone(token, unlocker_zone)

        session = Session(
            api_token=token,
            unlocker_zone=unlocker_zone,
            browser_zone=browser_zone,
        )
        if session_id is not None:
            self.bind(session_id, session)
        return session

    def bind(self, session_id: str, session: Session) -> None:
        """Attach ``session`` to an MCP session id.  The first binding wins."""
        self._sessions.setdefault(session_id, session)

    def forget(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def bound(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def ensure_zone(self, token: str, zone: str) -> None:
        """Best-effort "create the zone if absent".  Never raises.

        Each (token, zone) pair is attempted once per process, whatever the
        outcome.
        """
        key = (token, zone)
        if key in self._provisioned:
            return
        self._provisioned.add(key)
        try:
            await self._upstream_factory(token).ensure_zone(zone)
        except Exception as exc:
            logger.warning(f'Error checking/creating zone "{zone}": {exc}')
