"""Refresher - keeps the Snapshot Store in step with the USGS feed.

This module coordinates the shell (feed client) with the core
(normalization) and publishes the result. It owns the single refresh
timer; no other component writes to the store.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

import requests

from src.core.earthquake import FeedError, parse_earthquakes
from src.core.snapshot import Snapshot
from src.snapshot_store import SnapshotStore
from src.ticker import Ticker


logger = logging.getLogger(__name__)


class FeedClient(Protocol):
    """Anything that can fetch one decoded feed payload."""

    def fetch_feed(self) -> dict[str, Any]:
        ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RefreshResult:
    """Result of a single refresh attempt.

    Attributes:
        success: Whether a new snapshot was published
        earthquakes_fetched: Features in the feed response
        earthquakes_kept: Records that survived normalization
        skipped: True if another refresh was already running
        error: Error message if the refresh failed
    """
    success: bool
    earthquakes_fetched: int = 0
    earthquakes_kept: int = 0
    skipped: bool = False
    error: str | None = None

    @property
    def summary(self) -> str:
        """Human-readable summary of the refresh."""
        if self.skipped:
            return "Skipped, refresh already in progress"
        if not self.success:
            return f"Failed: {self.error}"
        return (
            f"Fetched {self.earthquakes_fetched} features, "
            f"{self.earthquakes_kept} earthquakes kept"
        )


@dataclass(frozen=True)
class RefreshStatus:
    """Running health of the refresher.

    Attributes:
        last_attempt_at: When the last refresh started
        last_success_at: When a snapshot was last published
        last_error: Error from the most recent failure
        consecutive_failures: Failures since the last success
        total_successes: Successful refreshes since start
        total_failures: Failed refreshes since start
    """
    last_attempt_at: datetime | None = None
    last_success_at: datetime | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    total_successes: int = 0
    total_failures: int = 0


@dataclass
class _Attempt:
    """One refresh attempt, shared between the waiting caller and the worker.

    Once abandoned, the worker must not publish or touch the status.
    """
    abandoned: bool = False
    result: RefreshResult | None = None


class Refresher:
    """Periodically fetches the feed and replaces the store's snapshot.

    At most one fetch runs at a time. A failed fetch never touches the
    store, so the previous snapshot keeps being served.
    """

    def __init__(
        self,
        store: SnapshotStore,
        feed_client: FeedClient,
        interval_seconds: float = 30.0,
        fetch_timeout_seconds: float = 10.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the refresher.

        Args:
            store: Store to publish snapshots into
            feed_client: Client that fetches the raw feed
            interval_seconds: Refresh period
            fetch_timeout_seconds: Deadline for one fetch when run from the loop
            clock: Source of updated_at timestamps
        """
        self.store = store
        self.feed_client = feed_client
        self.interval_seconds = interval_seconds
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.clock = clock
        self._fetch_lock = threading.Lock()
        # Guards _status and the publish step of each attempt
        self._status_lock = threading.Lock()
        self._status = RefreshStatus()
        self._task: asyncio.Task | None = None

    @property
    def status(self) -> RefreshStatus:
        with self._status_lock:
            return self._status

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def refresh_once(self) -> RefreshResult:
        """Fetch the feed once and publish a new snapshot on success.

        Blocking; safe to call from any thread. Returns a skipped result
        if another refresh holds the fetch lock.
        """
        return self._attempt_refresh(_Attempt())

    def _attempt_refresh(self, attempt: _Attempt) -> RefreshResult:
        if not self._fetch_lock.acquire(blocking=False):
            logger.warning("Refresh already in progress, skipping")
            return RefreshResult(success=False, skipped=True)

        try:
            return self._refresh(attempt)
        finally:
            self._fetch_lock.release()

    def _refresh(self, attempt: _Attempt) -> RefreshResult:
        started_at = self.clock()
        with self._status_lock:
            self._status = replace(self._status, last_attempt_at=started_at)

        try:
            geojson = self.feed_client.fetch_feed()
            earthquakes = parse_earthquakes(geojson)
        except (requests.RequestException, FeedError, ValueError) as e:
            return self._fail(attempt, f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.exception("Unexpected error while refreshing the feed")
            return self._fail(attempt, f"{type(e).__name__}: {e}")

        fetched = len(geojson.get("features", []))
        snapshot = Snapshot.build(earthquakes, updated_at=self.clock())
        result = RefreshResult(
            success=True,
            earthquakes_fetched=fetched,
            earthquakes_kept=snapshot.count,
        )

        with self._status_lock:
            if attempt.abandoned:
                logger.warning(
                    "Discarding %d earthquakes from a fetch that missed its deadline",
                    snapshot.count,
                )
                return RefreshResult(success=False, error="Fetch finished after its deadline")

            self.store.replace(snapshot)
            self._status = replace(
                self._status,
                last_success_at=snapshot.updated_at,
                last_error=None,
                consecutive_failures=0,
                total_successes=self._status.total_successes + 1,
            )
            attempt.result = result

        logger.info("Updated: %s", result.summary)
        return result

    def _fail(self, attempt: _Attempt, error: str) -> RefreshResult:
        with self._status_lock:
            if attempt.abandoned:
                logger.warning("Ignoring late failure of abandoned fetch: %s", error)
                return RefreshResult(success=False, error=error)
            attempt.result = self._record_failure(error)
            return attempt.result

    def _record_failure(self, error: str) -> RefreshResult:
        # Caller holds _status_lock
        self._status = replace(
            self._status,
            last_error=error,
            consecutive_failures=self._status.consecutive_failures + 1,
            total_failures=self._status.total_failures + 1,
        )
        logger.error(
            "Error fetching earthquakes (%d consecutive): %s",
            self._status.consecutive_failures,
            error,
        )
        return RefreshResult(success=False, error=error)

    async def refresh(self) -> RefreshResult:
        """Run one refresh in a worker thread, bounded by the fetch timeout.

        If the deadline passes, the attempt is abandoned: the worker thread
        keeps the fetch lock until it returns, so later ticks are skipped,
        and whatever it fetched is discarded instead of published.
        """
        attempt = _Attempt()
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._attempt_refresh, attempt),
                timeout=self.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            with self._status_lock:
                # The worker may have finished just as the deadline fired
                if attempt.result is not None:
                    return attempt.result
                attempt.abandoned = True
                error = f"Fetch exceeded {self.fetch_timeout_seconds}s deadline"
                return self._record_failure(error)

    async def start(self) -> RefreshResult:
        """Refresh once, then start the periodic loop.

        Returns:
            Result of the initial refresh
        """
        if self.running:
            raise RuntimeError("Refresher already started")

        result = await self.refresh()
        self._task = asyncio.create_task(self._run(), name="refresher")
        logger.info("Refresher started, interval %.1fs", self.interval_seconds)
        return result

    async def _run(self) -> None:
        async for _ in Ticker(self.interval_seconds, name="refresher"):
            try:
                await self.refresh()
            except Exception:
                logger.exception("Unexpected error during refresh")

    async def stop(self) -> None:
        """Stop the periodic loop. Idempotent."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Refresher stopped")
