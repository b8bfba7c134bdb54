"""Query Service - read-only facade over the Snapshot Store for pull clients."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from src.core.earthquake import Earthquake
from src.core.formatter import format_earthquakes_response, format_timestamp
from src.core.snapshot import Snapshot
from src.refresher import RefreshStatus, utcnow
from src.snapshot_store import SnapshotStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotView:
    """What a pull client sees: the full record set and its age."""
    earthquakes: tuple[Earthquake, ...]
    count: int
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return format_earthquakes_response(
            Snapshot(earthquakes=self.earthquakes, updated_at=self.updated_at)
        )


class QueryService:
    """Stateless reads of the current snapshot."""

    def __init__(
        self,
        store: SnapshotStore,
        stale_after_seconds: float = 90.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.stale_after_seconds = stale_after_seconds
        self.clock = clock

    def snapshot_view(self) -> SnapshotView:
        """Return the whole current snapshot. Never blocks on a refresh."""
        snapshot = self.store.current()
        return SnapshotView(
            earthquakes=snapshot.earthquakes,
            count=snapshot.count,
            updated_at=snapshot.updated_at,
        )

    def health(
        self,
        refresh_status: RefreshStatus,
        subscriber_count: int,
    ) -> dict[str, Any]:
        """Summarize freshness for the health endpoint.

        A snapshot that was never filled, or is older than the staleness
        threshold, is reported as degraded.
        """
        snapshot = self.store.current()
        age = snapshot.age_seconds(self.clock())
        stale = age is None or age > self.stale_after_seconds

        if stale:
            logger.debug("Snapshot is stale (age=%s)", age)

        return {
            "status": "degraded" if stale else "healthy",
            "lastUpdate": format_timestamp(snapshot.updated_at),
            "ageSeconds": age,
            "stale": stale,
            "count": snapshot.count,
            "subscribers": subscriber_count,
            "consecutiveFailures": refresh_status.consecutive_failures,
            "lastError": refresh_status.last_error,
        }
