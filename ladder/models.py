# ladder/models.py
"""
Ladder entities and the normalizers shared by every ingestion path.

Server payloads and cached payloads both pass through ``normalize_snapshot``
so the two sources can never disagree on shape: every field is coerced to
its semantic type with a safe default, players are ordered by rank and
matches by date (oldest first).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

SCORE_OPTIONS = ("2-0", "2-1", "0-2", "1-2")

_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)
_TRUE_STRINGS = {"true", "yes", "y", "1"}


# --- Coercion helpers ---

def safe_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def safe_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return int(value)
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def safe_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    text = safe_text(value)
    if not text:
        return None
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def date_sort_key(value: Any) -> Tuple[datetime, str]:
    parsed = parse_timestamp(value)
    return (parsed or _EPOCH_FLOOR, safe_text(value))


def utc_now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# --- Entities ---

@dataclass(frozen=True)
class Player:
    name: str = ""
    rank: int = 0
    wins: int = 0
    losses: int = 0
    streak: int = 0
    last_played: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rank": self.rank,
            "wins": self.wins,
            "losses": self.losses,
            "streak": self.streak,
            "lastPlayed": self.last_played,
        }


@dataclass(frozen=True)
class Match:
    date: str = ""
    challenger: str = ""
    defender: str = ""
    winner: str = ""
    score: str = ""
    allowed: bool = False
    swap: bool = False
    challenge_distance: int = 0

    def involves(self, name: str) -> bool:
        return name in (self.challenger, self.defender)

    def opponent_of(self, name: str) -> str:
        if name == self.challenger:
            return self.defender
        if name == self.defender:
            return self.challenger
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "challenger": self.challenger,
            "defender": self.defender,
            "winner": self.winner,
            "score": self.score,
            "allowed": self.allowed,
            "swap": self.swap,
            "challengeDistance": self.challenge_distance,
        }


@dataclass(frozen=True)
class PendingMatch:
    """A submission the server has not confirmed yet."""

    date: str
    challenger: str
    defender: str
    winner: str
    score: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PendingMatch":
        return cls(
            date=safe_text(raw.get("date")),
            challenger=safe_text(raw.get("challenger")),
            defender=safe_text(raw.get("defender")),
            winner=safe_text(raw.get("winner")),
            score=safe_text(raw.get("score")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "date": self.date,
            "challenger": self.challenger,
            "defender": self.defender,
            "winner": self.winner,
            "score": self.score,
        }


@dataclass(frozen=True)
class BaselineSnapshot:
    as_of: str
    ranks: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "BaselineSnapshot":
        ranks_raw = raw.get("ranks")
        ranks: Dict[str, int] = {}
        if isinstance(ranks_raw, Mapping):
            for name, rank in ranks_raw.items():
                clean = safe_text(name)
                value = safe_int(rank)
                if clean and value > 0:
                    ranks[clean] = value
        return cls(as_of=safe_text(raw.get("date")), ranks=ranks)

    def to_dict(self) -> Dict[str, Any]:
        # "date" is the persisted key name used by earlier clients.
        return {"date": self.as_of, "ranks": dict(self.ranks)}


@dataclass(frozen=True)
class Snapshot:
    players: Tuple[Player, ...] = ()
    matches: Tuple[Match, ...] = ()

    def player_by_name(self, name: str) -> Optional[Player]:
        target = safe_text(name)
        for player in self.players:
            if player.name == target:
                return player
        return None

    def names(self) -> List[str]:
        return [p.name for p in self.players]

    def matches_newest_first(self) -> List[Match]:
        return sorted(self.matches, key=lambda m: date_sort_key(m.date), reverse=True)

    def recent_matches(self, limit: int = 5) -> List[Match]:
        return self.matches_newest_first()[: max(0, limit)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "players": [p.to_dict() for p in self.players],
            "matches": [m.to_dict() for m in self.matches],
        }


# --- Normalizers ---

def normalize_player(raw: Any) -> Player:
    if isinstance(raw, Player):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raw = {}
    return Player(
        name=safe_text(raw.get("name")),
        rank=safe_int(raw.get("rank")),
        wins=safe_int(raw.get("wins")),
        losses=safe_int(raw.get("losses")),
        streak=safe_int(raw.get("streak")),
        last_played=safe_text(raw.get("lastPlayed")),
    )


def normalize_match(raw: Any) -> Match:
    if isinstance(raw, Match):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raw = {}
    return Match(
        date=safe_text(raw.get("date")),
        challenger=safe_text(raw.get("challenger")),
        defender=safe_text(raw.get("defender")),
        winner=safe_text(raw.get("winner")),
        score=safe_text(raw.get("score")),
        allowed=safe_bool(raw.get("allowed")),
        swap=safe_bool(raw.get("swap")),
        challenge_distance=max(0, safe_int(raw.get("challengeDistance"))),
    )


def _player_sort_key(player: Player) -> Tuple[bool, int]:
    # Unresolved ranks (0 or negative) go to the bottom of the ladder.
    return (player.rank <= 0, player.rank)


def normalize_snapshot(players: Iterable[Any], matches: Iterable[Any]) -> Snapshot:
    normalized_players = sorted((normalize_player(p) for p in players), key=_player_sort_key)
    normalized_matches = sorted((normalize_match(m) for m in matches), key=lambda m: date_sort_key(m.date))
    return Snapshot(players=tuple(normalized_players), matches=tuple(normalized_matches))


def build_candidate(
    challenger: Any,
    defender: Any,
    winner: Any,
    score: Any,
    date: Optional[str] = None,
) -> PendingMatch:
    """Validate a match form and return the submission candidate.

    Raises:
        ValueError: If a field is missing, the two sides are the same player,
            or the winner is not one of them.
    """
    challenger = safe_text(challenger)
    defender = safe_text(defender)
    winner = safe_text(winner)
    score = safe_text(score)

    if not challenger or not defender or not winner or not score:
        raise ValueError("Please complete all fields.")
    if challenger == defender:
        raise ValueError("Challenger and defender cannot be the same.")
    if winner not in (challenger, defender):
        raise ValueError("Winner must be the challenger or the defender.")

    return PendingMatch(
        date=safe_text(date) or utc_now_iso(),
        challenger=challenger,
        defender=defender,
        winner=winner,
        score=score,
    )
