"""Snapshot Store - the single piece of shared mutable state.

The refresher is the only writer; the query service and broadcast hub read.
Snapshots are immutable, so publishing one is a reference swap. The lock
covers only that swap and the matching read, so readers never wait on a
fetch and never see records from one refresh with the timestamp of another.
"""

import logging
import threading

from src.core.snapshot import Snapshot


logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds exactly one published Snapshot."""

    def __init__(self, initial: Snapshot | None = None) -> None:
        self._lock = threading.Lock()
        self._snapshot = initial if initial is not None else Snapshot.empty()

    def replace(self, snapshot: Snapshot) -> None:
        """Atomically publish a new snapshot.

        Args:
            snapshot: Fully built snapshot to publish

        Raises:
            TypeError: If snapshot is not a Snapshot
        """
        if not isinstance(snapshot, Snapshot):
            raise TypeError(
                f"Expected Snapshot, got {type(snapshot).__name__}"
            )

        with self._lock:
            self._snapshot = snapshot

        logger.debug(
            "Published snapshot with %d earthquakes (updated %s)",
            snapshot.count,
            snapshot.updated_at.isoformat(),
        )

    def current(self) -> Snapshot:
        """Return the snapshot visible at call time."""
        with self._lock:
            return self._snapshot
