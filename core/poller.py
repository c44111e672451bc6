# =============================================================================
# core/poller.py  —  Snapshot Poller (async dataset collection)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Structured-dataset tools cannot answer synchronously: the upstream
#   starts a collection job and hands back a snapshot id.  There is no
#   webhook we can receive, so we ask "is it ready yet?" once a second.
#
# THE PROTOCOL:
#   1. TRIGGER   POST the dataset id + inputs → snapshot_id
#                (no snapshot id → UpstreamProtocolError, no retry)
#   2. POLL      up to MAX_ATTEMPTS times, one second apart:
#                  {"status": "running"}  → not yet, count the attempt
#                  HTTP / transport error → transient, count the attempt
#                  anything else          → that body IS the result
#   3. GIVE UP   after MAX_ATTEMPTS → SnapshotTimeoutError
#
# SUSPENSION:
#   The one-second wait is an awaited sleep, so hundreds of polls can run
#   side by side on one event loop.  ``sleep`` is injectable so tests run
#   600 attempts in milliseconds.
# =============================================================================

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from core.errors import SnapshotTimeoutError
from core.models import ProgressCallback, SnapshotJob, SnapshotState
from core.upstream import UpstreamClient


logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 600
POLL_INTERVAL_SECONDS = 1.0


def is_running(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("status") == "running"


class SnapshotPoller:
    """Trigger a dataset collection and wait for its snapshot."""

    def __init__(
        self,
        upstream: UpstreamClient,
        max_attempts: int = MAX_ATTEMPTS,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        label: str = "snapshot",
    ):
        self.upstream = upstream
        self.max_attempts = max_attempts
        self.interval = interval
        self._sleep = sleep
        self.label = label

    async def collect(
        self,
        dataset_id: str,
        inputs: dict[str, str],
        progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Trigger ``dataset_id`` with ``inputs`` and return the ready payload."""
        snapshot_id = await self.upstream.trigger_dataset(dataset_id, inputs)
        logger.info(f"[{self.label}] triggered collection with snapshot ID: {snapshot_id}")
        return await self.poll(snapshot_id, progress)

    async def poll(
        self, snapshot_id: str, progress: Optional[ProgressCallback] = None
    ) -> str:
        """Poll ``snapshot_id`` until ready, returning the raw JSON body."""
        job = SnapshotJob(snapshot_id=snapshot_id, max_attempts=self.max_attempts)
        job.state = SnapshotState.POLLING

        while not job.exhausted:
            try:
                payload, body = await self.upstream.get_snapshot(snapshot_id)
            except httpx.HTTPError as exc:
                job.attempt += 1
                logger.warning(
                    f"[{self.label}] polling error "
                    f"(attempt {job.attempt}/{job.max_attempts}): {exc}"
                )
                await self._report(progress, job, "Polling error, retrying")
                await self._wait(job)
                continue
            except Exception:
                job.state = SnapshotState.FAILED
                raise

            job.attempt += 1
            if is_running(payload):
                job.last_status = "running"
                logger.info(
                    f"[{self.label}] snapshot not ready, polling again "
                    f"(attempt {job.attempt}/{job.max_attempts})"
                )
                await self._report(progress, job, "Snapshot is still running")
                await self._wait(job)
                continue

            job.state = SnapshotState.READY
            if isinstance(payload, dict):
                job.last_status = payload.get("status")
            logger.info(
                f"[{self.label}] snapshot data received after {job.attempt} attempts"
            )
            await self._report(progress, job, "Snapshot ready")
            return body

        job.state = SnapshotState.TIMED_OUT
        raise SnapshotTimeoutError(job.max_attempts)

    async def _wait(self, job: SnapshotJob) -> None:
        # No point sleeping after the last permitted attempt.
        if not job.exhausted:
            await self._sleep(self.interval)

    @staticmethod
    async def _report(
        progress: Optional[ProgressCallback], job: SnapshotJob, status: str
    ) -> None:
        if progress is None:
            return
        await progress(
            job.attempt,
            job.max_attempts,
            f"{status} (attempt {job.attempt}/{job.max_attempts})",
        )
