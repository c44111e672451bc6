# =============================================================================
# core/config.py  —  Process Configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads every knob the gateway has from environment variables and turns
#   them into one immutable Settings object.  main.py calls load_dotenv()
#   first, so a local .env file works the same as real env vars.
#
# FAIL FAST:
#   A malformed RATE_LIMIT (or PORT) raises ConfigurationError here, at
#   startup.  The process never starts serving with a half-understood quota.
#
# SUPPORTED VARIABLES:
#   PORT, HOST, MCP_PATH, MCP_TRANSPORT, API_TOKEN, WEB_UNLOCKER_ZONE,
#   BROWSER_ZONE, RATE_LIMIT, API_BASE_URL, LOG_LEVEL
# =============================================================================

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigurationError
from core.models import RateLimitConfig


SERVER_NAME = "webdata-gateway"
VERSION = "1.0.0"

DEFAULT_UNLOCKER_ZONE = "mcp_unlocker"
DEFAULT_BROWSER_ZONE = "mcp_browser"
DEFAULT_API_BASE_URL = "https://api.brightdata.com"

_RATE_LIMIT_RE = re.compile(r"^(\d+)/(\d+)([smh])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600}


def parse_rate_limit(value: Optional[str]) -> Optional[RateLimitConfig]:
    """Parse ``<count>/<duration><unit>`` (unit ∈ s, m, h).

    Returns None when ``value`` is empty, which disables rate limiting.

    Examples:
        "100/1h"  → 100 calls per 3_600_000 ms
        "50/30m"  → 50 calls per 1_800_000 ms
    """
    if not value:
        return None

    match = _RATE_LIMIT_RE.match(value.strip())
    if match is None:
        raise ConfigurationError(
            f"Invalid RATE_LIMIT format {value!r}. Use: 100/1h or 50/30m"
        )

    limit, duration, unit = int(match.group(1)), int(match.group(2)), match.group(3)
    if limit <= 0 or duration <= 0:
        raise ConfigurationError(
            f"Invalid RATE_LIMIT {value!r}: count and duration must be positive"
        )

    return RateLimitConfig(
        limit=limit,
        window_ms=duration * _UNIT_SECONDS[unit] * 1000,
        display=value.strip(),
    )


@dataclass(frozen=True)
class Settings:
    """Everything the gateway reads from its environment."""

    host: str = "0.0.0.0"
    port: int = 8080
    path: str = "/mcp"
    transport: str = "http"
    api_token: Optional[str] = None
    unlocker_zone: Optional[str] = None
    browser_zone: Optional[str] = None
    rate_limit: Optional[RateLimitConfig] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    log_level: str = "INFO"

    @property
    def user_agent(self) -> str:
        return f"{SERVER_NAME}/{VERSION}"

    @property
    def default_unlocker_zone(self) -> str:
        return self.unlocker_zone or DEFAULT_UNLOCKER_ZONE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        raw_port = env.get("PORT", "8080")
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigurationError(f"Invalid PORT {raw_port!r}: expected an integer")

        transport = env.get("MCP_TRANSPORT", "http").lower()
        if transport not in ("http", "stdio"):
            raise ConfigurationError(
                f"Invalid MCP_TRANSPORT {transport!r}: expected 'http' or 'stdio'"
            )

        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=port,
            path=env.get("MCP_PATH", "/mcp"),
            transport=transport,
            api_token=env.get("API_TOKEN") or None,
            unlocker_zone=env.get("WEB_UNLOCKER_ZONE") or None,
            browser_zone=env.get("BROWSER_ZONE") or None,
            rate_limit=parse_rate_limit(env.get("RATE_LIMIT")),
            api_base_url=env.get("API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
