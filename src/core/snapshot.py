"""Snapshot value - Pure data structure.

A Snapshot is the complete record set produced by one successful refresh
together with the time it was produced. Snapshots are never mutated; a
newer refresh replaces the whole value.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from src.core.earthquake import Earthquake


# Timestamp of a snapshot that has never been filled by a refresh
NEVER_UPDATED = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Snapshot:
    """Immutable record set plus its freshness timestamp.

    Attributes:
        earthquakes: Records in upstream order
        updated_at: When the refresh that produced them completed
    """
    earthquakes: tuple[Earthquake, ...] = ()
    updated_at: datetime = NEVER_UPDATED

    @classmethod
    def empty(cls) -> "Snapshot":
        """Snapshot held before the first successful refresh."""
        return cls()

    @classmethod
    def build(cls, earthquakes: list[Earthquake], updated_at: datetime) -> "Snapshot":
        """Build a snapshot, freezing the record list."""
        return cls(earthquakes=tuple(earthquakes), updated_at=updated_at)

    @property
    def count(self) -> int:
        return len(self.earthquakes)

    @property
    def never_updated(self) -> bool:
        """True if no refresh has ever succeeded."""
        return self.updated_at == NEVER_UPDATED

    def age_seconds(self, now: datetime) -> float | None:
        """Seconds since this snapshot was produced, None if never updated."""
        if self.never_updated:
            return None
        return max(0.0, (now - self.updated_at).total_seconds())
