# tests/helpers.py

import json
import os
from datetime import date
from typing import List, Optional

from ladder.models import Match, PendingMatch, Player, Snapshot, normalize_snapshot
from ladder.store import LocalStore

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def load_fixture(filename: str):
    with open(os.path.join(FIXTURES_DIR, filename), "r", encoding="utf-8") as f:
        return json.load(f)


def make_players(*names: str) -> List[Player]:
    """Players ranked in the order given, starting at 1."""
    return [Player(name=name, rank=i) for i, name in enumerate(names, start=1)]


def make_snapshot(names: List[str], matches: Optional[List[Match]] = None) -> Snapshot:
    return normalize_snapshot(make_players(*names), matches or [])


def make_match(challenger: str, defender: str, winner: Optional[str] = None,
               day: int = 1, distance: int = 1) -> Match:
    return Match(
        date=f"2026-10-{day:02d}T12:00:00.000Z",
        challenger=challenger,
        defender=defender,
        winner=winner or challenger,
        score="2-1",
        allowed=True,
        challenge_distance=distance,
    )


def make_pending(challenger: str, defender: str, minute: int = 0,
                 winner: Optional[str] = None, score: str = "2-0") -> PendingMatch:
    return PendingMatch(
        date=f"2026-10-18T10:{minute:02d}:00.000Z",
        challenger=challenger,
        defender=defender,
        winner=winner or challenger,
        score=score,
    )


class FakeClock:
    """Stand-in for date.today() that tests can move forward."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


class BrokenStore(LocalStore):
    """A store whose backing file could not be opened."""

    def __init__(self):
        self.db_path = "<unavailable>"
        self.conn = None
        self.last_error = None


class FakeAPI:
    """In-process stand-in for LadderAPIClient."""

    def __init__(self):
        self.state = make_snapshot(["A", "B", "C"])
        self.fetch_error = None
        self.submit_results = []
        self.submitted = []
        self.pins = []

    def fetch_state(self):
        if self.fetch_error:
            raise self.fetch_error
        return self.state

    def submit_match(self, candidate, pin=None):
        self.submitted.append(candidate)
        self.pins.append(pin)
        result = self.submit_results.pop(0) if self.submit_results else None
        if isinstance(result, Exception):
            raise result
        return result
