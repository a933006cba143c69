# ladder/baseline.py
"""
Rank baseline used to report how far each player has moved.

Two strategies share one persisted entry:

  CALENDAR_DAY  the baseline is taken the first time movement is needed on a
                given device-local day and stays put until the day changes.
  SESSION       the baseline is the ladder as it stood just before the most
                recent successful sync replaced it.

A tracker is built with exactly one strategy; switching strategies mid-session
would make the reported movement jump for no visible reason.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from ladder.models import BaselineSnapshot, Player, safe_int, safe_text
from ladder.store import STORAGE_KEYS, LocalStore

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session:"


class BaselineStrategy(str, Enum):
    CALENDAR_DAY = "calendar_day"
    SESSION = "session"

    @classmethod
    def parse(cls, value: str) -> "BaselineStrategy":
        text = safe_text(value).lower().replace("-", "_")
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown baseline strategy '{value}' (expected calendar_day or session)")


def today_key(today: Optional[date] = None) -> str:
    """Device-local calendar day as YYYY-MM-DD."""
    return (today or date.today()).strftime("%Y-%m-%d")


def capture_ranks(players: Iterable[Player]) -> Dict[str, int]:
    ranks: Dict[str, int] = {}
    for player in players or ():
        name = safe_text(player.name)
        rank = safe_int(player.rank)
        if name and rank > 0:
            ranks[name] = rank
    return ranks


class BaselineTracker:
    def __init__(
        self,
        store: LocalStore,
        strategy: BaselineStrategy = BaselineStrategy.CALENDAR_DAY,
        today: Callable[[], date] = date.today,
        key: str = STORAGE_KEYS["daily_baseline"],
    ):
        self.store = store
        self.strategy = strategy
        self.today = today
        self.key = key

    def load(self) -> Optional[BaselineSnapshot]:
        data = self.store.get_json(self.key)
        if not isinstance(data, dict):
            return None
        return BaselineSnapshot.from_mapping(data)

    def _write(self, baseline: BaselineSnapshot) -> BaselineSnapshot:
        self.store.set_json(self.key, baseline.to_dict())
        return baseline

    def ensure_baseline(self, players: Iterable[Player]) -> BaselineSnapshot:
        """Make sure a baseline exists for the current period and return it.

        Calendar-day: written once per day, never recomputed within the day.
        Session: only seeded when nothing has been captured yet.
        """
        existing = self.load()

        if self.strategy is BaselineStrategy.SESSION:
            if existing is not None and existing.as_of.startswith(SESSION_PREFIX):
                return existing
            return self._write(self._session_baseline(players))

        current_day = today_key(self.today())
        if existing is not None and existing.as_of == current_day:
            return existing
        logger.debug("Rolling rank baseline over to %s", current_day)
        return self._write(BaselineSnapshot(as_of=current_day, ranks=capture_ranks(players)))

    def observe_replacement(self, previous: Iterable[Player]) -> None:
        """Called just before a fresh snapshot supersedes ``previous``."""
        if self.strategy is not BaselineStrategy.SESSION:
            return
        baseline = self._session_baseline(previous)
        if baseline.ranks:
            self._write(baseline)

    @staticmethod
    def _session_baseline(players: Iterable[Player]) -> BaselineSnapshot:
        stamp = datetime.now(timezone.utc).isoformat()
        return BaselineSnapshot(as_of=f"{SESSION_PREFIX}{stamp}", ranks=capture_ranks(players))

    def movement_for(self, players: Iterable[Player]) -> Dict[str, int]:
        """Rank delta per player against the stored baseline.

        Positive means the player climbed (rank number went down). Players
        without history, or with an unresolved rank, report 0.
        """
        baseline = self.load()
        base_ranks = baseline.ranks if baseline else {}
        movement: Dict[str, int] = {}
        for player in players or ():
            name = safe_text(player.name)
            now_rank = safe_int(player.rank)
            base_rank = safe_int(base_ranks.get(name))
            movement[name] = base_rank - now_rank if base_rank > 0 and now_rank > 0 else 0
        return movement
