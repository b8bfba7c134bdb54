"""Tests for the Query Service."""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.earthquake import Earthquake
from src.core.snapshot import Snapshot
from src.query_service import QueryService, SnapshotView
from src.refresher import RefreshStatus
from src.snapshot_store import SnapshotStore


NOW = datetime(2024, 7, 4, 18, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def earthquakes():
    return [
        Earthquake(
            id=f"nc{i}",
            magnitude=1.5 + i,
            place="Geysers, CA",
            time=NOW - timedelta(minutes=i),
            latitude=38.8,
            longitude=-122.8,
            depth_km=2.0,
        )
        for i in range(3)
    ]


@pytest.fixture
def store():
    return SnapshotStore()


@pytest.fixture
def service(store):
    return QueryService(store, stale_after_seconds=90, clock=lambda: NOW)


class TestSnapshotView:
    """Tests for QueryService.snapshot_view()."""

    def test_initial_view_is_empty(self, service):
        view = service.snapshot_view()

        assert view.earthquakes == ()
        assert view.count == 0
        assert view.updated_at.year == 1

    def test_returns_full_record_set(self, service, store, earthquakes):
        store.replace(Snapshot.build(earthquakes, updated_at=NOW))

        view = service.snapshot_view()

        assert view.count == 3
        assert [e.id for e in view.earthquakes] == ["nc0", "nc1", "nc2"]
        assert view.updated_at == NOW

    def test_repeated_reads_are_idempotent(self, service, store, earthquakes):
        store.replace(Snapshot.build(earthquakes, updated_at=NOW))

        assert service.snapshot_view() == service.snapshot_view()

    def test_to_dict_uses_pull_format(self, service, store, earthquakes):
        store.replace(Snapshot.build(earthquakes, updated_at=NOW))

        result = service.snapshot_view().to_dict()

        assert result["count"] == 3
        assert result["lastUpdate"] == NOW.isoformat()
        assert len(result["earthquakes"]) == 3


class TestHealth:
    """Tests for QueryService.health()."""

    def test_never_updated_is_degraded(self, service):
        result = service.health(RefreshStatus(), subscriber_count=0)

        assert result["status"] == "degraded"
        assert result["stale"] is True
        assert result["ageSeconds"] is None

    def test_fresh_snapshot_is_healthy(self, service, store):
        store.replace(Snapshot.build([], updated_at=NOW - timedelta(seconds=30)))

        result = service.health(RefreshStatus(), subscriber_count=4)

        assert result["status"] == "healthy"
        assert result["ageSeconds"] == 30.0
        assert result["subscribers"] == 4

    def test_old_snapshot_is_stale(self, service, store):
        store.replace(Snapshot.build([], updated_at=NOW - timedelta(minutes=10)))
        status = RefreshStatus(consecutive_failures=20, last_error="ConnectionError: down")

        result = service.health(status, subscriber_count=0)

        assert result["stale"] is True
        assert result["consecutiveFailures"] == 20
        assert result["lastError"] == "ConnectionError: down"


class TestSnapshotViewModel:
    def test_is_immutable(self):
        view = SnapshotView(earthquakes=(), count=0, updated_at=NOW)

        with pytest.raises(Exception):  # FrozenInstanceError
            view.count = 1  # type: ignore
