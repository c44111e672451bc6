# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the gateway)
# =============================================================================
#
# These dataclasses describe every piece of state that flows through the
# tool execution pipeline.  They carry almost no behavior.
#
# OWNERSHIP AT A GLANCE:
#   Session          → built once by the authenticator, read-only afterwards
#   RateLimitConfig  → parsed once from RATE_LIMIT at startup
#   SnapshotJob      → owned by exactly one poll loop, never shared
#   DatasetSpec      → static catalogue rows (core/datasets.py)
#   ToolContext      → the resolved credential/zones for ONE tool call
#
# The two process-wide mutable things (rate-limit window, usage counters)
# are NOT here: they live in their own guarded objects (rate_limiter.py,
# usage.py).
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional


# -----------------------------------------------------------------------------
# Session — the authenticated caller
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Session:
    """Authenticated caller identity bound to one inbound connection."""

    api_token: str                     # Bearer credential forwarded upstream
    unlocker_zone: str                 # Zone used by scrape/search tools
    browser_zone: Optional[str]        # Zone used by browser tools


@dataclass(frozen=True)
class RateLimitConfig:
    """Sliding-window quota parsed from e.g. ``100/1h``."""

    limit: int                         # Max calls inside one window
    window_ms: int                     # Window length in milliseconds
    display: str                       # Original RATE_LIMIT string, echoed in errors


# -----------------------------------------------------------------------------
# SnapshotJob — one asynchronous dataset collection
# -----------------------------------------------------------------------------
#   TRIGGERED ──► POLLING ──► READY
#                    │
#                    ├──────► TIMED_OUT   (attempt == max_attempts)
#                    └──────► FAILED      (unrecoverable upstream response)
# -----------------------------------------------------------------------------
class SnapshotState(str, Enum):
    TRIGGERED = "triggered"
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class SnapshotJob:
    """Progress of one snapshot poll.  ``attempt`` only ever goes up."""

    snapshot_id: str
    max_attempts: int
    attempt: int = 0
    state: SnapshotState = SnapshotState.TRIGGERED
    last_status: Optional[str] = None  # Last "status" the upstream reported

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    @property
    def finished(self) -> bool:
        return self.state in (
            SnapshotState.READY, SnapshotState.TIMED_OUT, SnapshotState.FAILED,
        )


@dataclass(frozen=True)
class DatasetSpec:
    """One row of the structured-dataset catalogue.

    The tool registry turns each row into a ``web_data_<id>`` tool whose
    input fields are ``inputs``; fields listed in ``defaults`` become
    optional.
    """

    id: str
    dataset_id: str                    # Upstream dataset identifier
    description: str
    inputs: tuple[str, ...] = ("url",)
    defaults: dict[str, str] = field(default_factory=dict)

    @property
    def tool_name(self) -> str:
        return f"web_data_{self.id}"


# Progress callbacks receive (progress, total, message).
ProgressCallback = Callable[[int, int, str], Awaitable[None]]


# -----------------------------------------------------------------------------
# ToolContext — what a tool body actually gets to work with
# -----------------------------------------------------------------------------
# Built by the invocation wrapper (tools/invocation.py) from the active
# Session, or from process defaults when there is no session.  ``upstream``
# is an UpstreamClient already carrying the credential, so tool bodies never
# touch the token directly.
# -----------------------------------------------------------------------------
@dataclass
class ToolContext:
    """Resolved per-call context injected into every tool body."""

    tool_name: str
    api_token: str
    unlocker_zone: str
    browser_zone: Optional[str]
    upstream: Any                      # core.upstream.UpstreamClient
    progress: Optional[ProgressCallback] = None

    async def report_progress(self, progress: int, total: int, message: str) -> None:
        """Forward progress to the caller when it supports notifications."""
        if self.progress is not None:
            await self.progress(progress, total, message)
