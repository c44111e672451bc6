# =============================================================================
# core/errors.py  —  Error Taxonomy
# =============================================================================
#
# Every failure the gateway raises on purpose is a GatewayError subclass.
# The tool layer lets these propagate; the framework turns the message into
# an error result for the caller, so messages are written for the caller.
#
#   AuthError              missing / malformed credential      (HTTP 401)
#   RateLimitError         quota exhausted                     never retried
#   UpstreamHTTPError      upstream answered non-2xx           retried only by the poller
#   UpstreamProtocolError  upstream answered something odd     never retried
#   SnapshotTimeoutError   poller ran out of attempts
#   ConfigurationError     bad environment at startup          process exits
#   BrowserZoneError       browser tool without a browser zone
# =============================================================================

from typing import Optional


class GatewayError(Exception):
    """Base class for every error the gateway raises deliberately."""


class AuthError(GatewayError):
    """The inbound request carried no usable credential."""

    MISSING = "Missing API token"
    INVALID_FORMAT = "Invalid API token format"
    SESSION_MISMATCH = "API token does not match the MCP session"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unauthorized - {reason}")


class RateLimitError(GatewayError):
    def __init__(self, display: str):
        self.display = display
        super().__init__(f"Rate limit exceeded: {display}")


class UpstreamHTTPError(GatewayError):
    """Normalized form of any non-success response from the upstream API."""

    def __init__(self, status_code: int, body: str, reason: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {body}")


class UpstreamProtocolError(GatewayError):
    """The upstream answered 2xx but not with the shape we expected."""


class SnapshotTimeoutError(GatewayError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Timeout after {attempts} attempts ({attempts} seconds) waiting for data"
        )


class ConfigurationError(GatewayError):
    """Invalid process configuration.  Raised before the server starts."""


class BrowserZoneError(GatewayError):
    def __init__(self):
        super().__init__(
            "Browser tools require a browser zone. "
            "Specify browser=ZONE_NAME in the URL."
        )
