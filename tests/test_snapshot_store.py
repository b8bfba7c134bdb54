"""Tests for the Snapshot Store.

Readers must always observe a snapshot whose records and timestamp were
published together, even while a writer is replacing it.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from src.core.earthquake import Earthquake
from src.core.snapshot import NEVER_UPDATED, Snapshot
from src.snapshot_store import SnapshotStore


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _make_snapshot(generation: int) -> Snapshot:
    """Snapshot whose record count and timestamp both encode ``generation``."""
    records = [
        Earthquake(
            id=f"gen{generation}-{i}",
            magnitude=1.0 + i,
            place=f"generation {generation}",
            time=BASE_TIME,
            latitude=0.0,
            longitude=0.0,
            depth_km=1.0,
        )
        for i in range(generation % 7 + 1)
    ]
    return Snapshot.build(records, updated_at=BASE_TIME + timedelta(seconds=generation))


def _generation_of(snapshot: Snapshot) -> int:
    return int((snapshot.updated_at - BASE_TIME).total_seconds())


class TestInitialState:
    def test_starts_empty(self):
        store = SnapshotStore()
        snapshot = store.current()

        assert snapshot.earthquakes == ()
        assert snapshot.count == 0
        assert snapshot.updated_at == NEVER_UPDATED

    def test_accepts_initial_snapshot(self):
        initial = _make_snapshot(3)
        assert SnapshotStore(initial).current() is initial


class TestReplace:
    def test_replace_is_visible_immediately(self):
        store = SnapshotStore()
        snapshot = _make_snapshot(1)

        store.replace(snapshot)

        assert store.current() is snapshot

    def test_replace_is_wholesale(self):
        store = SnapshotStore()
        store.replace(_make_snapshot(6))
        store.replace(_make_snapshot(1))

        ids = [e.id for e in store.current().earthquakes]
        assert all(i.startswith("gen1-") for i in ids)

    def test_rejects_non_snapshot(self):
        store = SnapshotStore()

        with pytest.raises(TypeError):
            store.replace([])  # type: ignore

        assert store.current().updated_at == NEVER_UPDATED


class TestCurrent:
    def test_repeated_reads_are_identical(self):
        store = SnapshotStore()
        store.replace(_make_snapshot(2))

        first = store.current()
        second = store.current()

        assert first is second
        assert first == _make_snapshot(2)


class TestConcurrentAccess:
    """No torn reads under a concurrent writer and many readers."""

    def test_readers_never_see_torn_snapshots(self):
        store = SnapshotStore()
        stop = threading.Event()
        failures: list[str] = []
        generations = 2000

        def writer():
            for generation in range(1, generations + 1):
                store.replace(_make_snapshot(generation))
            stop.set()

        def reader():
            last_seen = -1
            while not stop.is_set():
                snapshot = store.current()
                if snapshot.never_updated:
                    continue
                generation = _generation_of(snapshot)
                expected_ids = [f"gen{generation}-{i}" for i in range(generation % 7 + 1)]
                if [e.id for e in snapshot.earthquakes] != expected_ids:
                    failures.append(f"torn read at generation {generation}")
                    return
                if generation < last_seen:
                    failures.append(f"went backwards {last_seen} -> {generation}")
                    return
                last_seen = generation

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()

        writer_thread.join(timeout=30)
        stop.set()
        for t in readers:
            t.join(timeout=30)

        assert failures == []
        assert _generation_of(store.current()) == generations
