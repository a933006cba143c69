# tests/test_baseline.py

from datetime import date

import pytest

from ladder.baseline import BaselineStrategy, BaselineTracker, today_key
from ladder.models import Player
from ladder.store import STORAGE_KEYS, LocalStore
from tests.helpers import BrokenStore, FakeClock, make_players


@pytest.fixture
def store():
    store = LocalStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def clock():
    return FakeClock(date(2026, 10, 17))


@pytest.fixture
def tracker(store, clock):
    return BaselineTracker(store, today=clock)


def test_today_key_format():
    assert today_key(date(2026, 3, 7)) == "2026-03-07"


def test_strategy_parse():
    assert BaselineStrategy.parse("calendar-day") is BaselineStrategy.CALENDAR_DAY
    assert BaselineStrategy.parse("SESSION") is BaselineStrategy.SESSION
    with pytest.raises(ValueError):
        BaselineStrategy.parse("weekly")


class TestCalendarDay:
    def test_first_call_captures_current_ranks(self, tracker, store):
        baseline = tracker.ensure_baseline(make_players("A", "B", "C"))
        assert baseline.as_of == "2026-10-17"
        assert baseline.ranks == {"A": 1, "B": 2, "C": 3}
        assert store.get_json(STORAGE_KEYS["daily_baseline"]) == {
            "date": "2026-10-17",
            "ranks": {"A": 1, "B": 2, "C": 3},
        }

    def test_not_recomputed_within_the_day(self, tracker):
        tracker.ensure_baseline(make_players("A", "B", "C"))
        tracker.ensure_baseline(make_players("C", "A", "B"))
        assert tracker.load().ranks == {"A": 1, "B": 2, "C": 3}

    def test_movement_signs(self, tracker):
        tracker.ensure_baseline([Player("up", 5), Player("down", 3), Player("flat", 1)])
        movement = tracker.movement_for([Player("up", 3), Player("down", 7), Player("flat", 1)])
        assert movement == {"up": 2, "down": -4, "flat": 0}

    def test_unknown_or_unranked_players_report_zero(self, tracker):
        tracker.ensure_baseline([Player("A", 1), Player("B", 0)])
        movement = tracker.movement_for([Player("A", 0), Player("B", 2), Player("New", 3)])
        assert movement == {"A": 0, "B": 0, "New": 0}

    def test_movement_without_baseline_is_zero(self, tracker):
        assert tracker.movement_for(make_players("A", "B")) == {"A": 0, "B": 0}

    def test_rollover_requires_ensure(self, tracker, clock):
        tracker.ensure_baseline(make_players("A", "B", "C"))
        moved = make_players("C", "A", "B")
        assert tracker.movement_for(moved) == {"C": 2, "A": -1, "B": -1}

        clock.today = date(2026, 10, 18)
        # Still measured against yesterday until the baseline is refreshed.
        assert tracker.movement_for(moved) == {"C": 2, "A": -1, "B": -1}

        tracker.ensure_baseline(moved)
        assert tracker.load().as_of == "2026-10-18"
        assert tracker.movement_for(moved) == {"C": 0, "A": 0, "B": 0}

    def test_replacement_is_ignored(self, tracker):
        tracker.ensure_baseline(make_players("A", "B"))
        tracker.observe_replacement(make_players("B", "A"))
        assert tracker.load().ranks == {"A": 1, "B": 2}

    def test_corrupt_baseline_entry_is_replaced(self, tracker, store):
        store.set(STORAGE_KEYS["daily_baseline"], "{oops")
        baseline = tracker.ensure_baseline(make_players("A"))
        assert baseline.ranks == {"A": 1}

    def test_storage_failure_degrades_to_no_movement(self, clock):
        tracker = BaselineTracker(BrokenStore(), today=clock)
        tracker.ensure_baseline(make_players("A", "B"))
        assert tracker.movement_for(make_players("B", "A")) == {"B": 0, "A": 0}


class TestSession:
    @pytest.fixture
    def tracker(self, store, clock):
        return BaselineTracker(store, strategy=BaselineStrategy.SESSION, today=clock)

    def test_replacement_captures_previous_ranks(self, tracker):
        before = make_players("A", "B", "C")
        after = make_players("B", "A", "C")
        tracker.observe_replacement(before)
        assert tracker.movement_for(after) == {"B": 1, "A": -1, "C": 0}

    def test_ensure_keeps_existing_session_baseline(self, tracker, clock):
        tracker.observe_replacement(make_players("A", "B"))
        clock.today = date(2026, 10, 20)
        tracker.ensure_baseline(make_players("B", "A"))
        assert tracker.load().ranks == {"A": 1, "B": 2}

    def test_ensure_seeds_when_empty(self, tracker):
        baseline = tracker.ensure_baseline(make_players("A", "B"))
        assert baseline.as_of.startswith("session:")
        assert baseline.ranks == {"A": 1, "B": 2}

    def test_empty_previous_state_keeps_baseline(self, tracker):
        tracker.observe_replacement(make_players("A", "B"))
        tracker.observe_replacement([])
        assert tracker.load().ranks == {"A": 1, "B": 2}
