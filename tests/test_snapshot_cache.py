# tests/test_snapshot_cache.py

import pytest

from ladder.models import normalize_snapshot
from ladder.snapshot_cache import SnapshotCache
from ladder.store import STORAGE_KEYS, LocalStore
from tests.helpers import BrokenStore, load_fixture


@pytest.fixture
def store():
    store = LocalStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def cache(store):
    return SnapshotCache(store)


def test_load_missing_returns_none(cache):
    assert cache.load() is None


def test_save_then_load(cache):
    payload = load_fixture("ladder_state.json")
    snapshot = normalize_snapshot(payload["players"], payload["matches"])

    assert cache.save(snapshot) is True
    assert cache.load() == snapshot


def test_load_normalizes_raw_entries(store, cache):
    store.set_json(STORAGE_KEYS["last_state"], {
        "players": [{"name": "B", "rank": "2"}, {"name": "A", "rank": 1, "wins": "x"}],
        "matches": [{"date": "2026-10-02T00:00:00Z"}, {"date": "2026-10-01T00:00:00Z", "swap": "TRUE"}],
    })
    snapshot = cache.load()
    assert [p.name for p in snapshot.players] == ["A", "B"]
    assert snapshot.players[0].wins == 0
    assert snapshot.matches[0].swap is True


@pytest.mark.parametrize("raw", [
    "{not json",
    "[]",
    "42",
    '{"players": []}',
    '{"players": {}, "matches": []}',
    '{"players": [], "matches": "none"}',
])
def test_malformed_entries_are_ignored(store, cache, raw):
    store.set(STORAGE_KEYS["last_state"], raw)
    assert cache.load() is None


def test_save_failure_does_not_raise():
    cache = SnapshotCache(BrokenStore())
    assert cache.save(normalize_snapshot([], [])) is False
    assert cache.load() is None


def test_clear(cache):
    cache.save(normalize_snapshot([{"name": "A", "rank": 1}], []))
    cache.clear()
    assert cache.load() is None
