# =============================================================================
# core/usage.py  —  Tool Usage Statistics
# =============================================================================
#
# Counts how often each tool has been invoked since the process started.
# The invocation wrapper records every call; the session_stats tool reads
# the counters back.  The lock keeps counter and total consistent with each
# other when calls interleave.
# =============================================================================

import threading


class UsageStats:
    """Per-tool call counters plus a running total."""

    def __init__(self):
        self._calls: dict[str, int] = {}
        self._total = 0
        self._lock = threading.Lock()

    def record(self, tool_name: str) -> None:
        with self._lock:
            self._calls[tool_name] = self._calls.get(tool_name, 0) + 1
            self._total += 1

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def snapshot(self) -> dict[str, int]:
        """A copy of the per-tool counters, in first-use order."""
        with self._lock:
            return dict(self._calls)

    def report(self) -> str:
        """Human-readable summary returned by the session_stats tool."""
        with self._lock:
            lines = ["Tool calls this session:"]
            for name, calls in self._calls.items():
                lines.append(f"- {name} tool: called {calls} times")
            lines.append(f"Total calls: {self._total}")
        return "\n".join(lines)
