# =============================================================================
# core/rate_limiter.py  —  Process-wide Sliding-Window Rate Limiter
# =============================================================================
#
# HOW IT WORKS:
#   We remember the instant of every admitted call.  On each check we drop
#   the instants older than (now - window) and compare what is left with
#   the limit.  No buckets, no refill maths: the window slides with time.
#
# ATOMICITY:
#   "prune, compare, append" must happen as one step.  Tool handlers are
#   coroutines on one event loop, but the framework may also run code on
#   worker threads, so the step sits behind a threading.Lock.  Nothing
#   inside the lock awaits, so holding it never blocks the loop for long.
#
# TESTABILITY:
#   The clock is injectable (milliseconds).  Tests drive time by hand
#   instead of sleeping.
# =============================================================================

import threading
import time
from collections import deque
from typing import Callable, Optional

from core.errors import RateLimitError
from core.models import RateLimitConfig


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class SlidingWindowRateLimiter:
    """Gate deciding whether one more tool call may proceed."""

    def __init__(
        self,
        config: Optional[RateLimitConfig],
        clock: Callable[[], float] = _monotonic_ms,
    ):
        self.config = config
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.config is not None

    def check(self) -> None:
        """Admit one call or raise RateLimitError.

        Disabled (no config) → every call is admitted and nothing is recorded.
        """
        if self.config is None:
            return

        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._timestamps) >= self.config.limit:
                raise RateLimitError(self.config.display)
            self._timestamps.append(now)

    def in_window(self) -> int:
        """How many admitted calls are still inside the window right now."""
        if self.config is None:
            return 0
        with self._lock:
            self._prune(self._clock())
            return len(self._timestamps)

    def _prune(self, now: float) -> None:
        # Timestamps are appended in clock order, so the oldest is on the left.
        window_start = now - self.config.window_ms
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()
