# ladder/awards.py

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ladder.models import Match, Snapshot


@dataclass(frozen=True)
class Award:
    title: str
    value: str = ""
    detail: str = ""

    def to_dict(self) -> dict:
        return {"title": self.title, "value": self.value, "detail": self.detail}


def _leader(names: Iterable[str]) -> Optional[Tuple[str, int]]:
    """Highest count; ties go to the name seen first."""
    counts = Counter(names)
    if not counts:
        return None
    name = max(counts, key=counts.__getitem__)
    return name, counts[name]


def _challenger_wins(matches: Iterable[Match], min_distance: int = 0) -> List[str]:
    return [
        m.challenger
        for m in matches
        if m.challenger and m.winner == m.challenger and m.challenge_distance >= min_distance
    ]


def compute_awards(snapshot: Snapshot) -> List[Award]:
    if not snapshot.players:
        return []

    champion = next((p for p in snapshot.players if p.rank == 1), None)
    top_challenger = _leader(_challenger_wins(snapshot.matches))
    giant_killer = _leader(_challenger_wins(snapshot.matches, min_distance=1))

    return [
        Award(
            "Ladder Champion",
            champion.name if champion else "",
            "Rank #1" if champion else "",
        ),
        Award(
            "Most Successful Challenger",
            top_challenger[0] if top_challenger else "",
            f"{top_challenger[1]} challenge wins" if top_challenger else "",
        ),
        Award(
            "Giant Killer",
            giant_killer[0] if giant_killer else "",
            f"{giant_killer[1]} wins vs higher ranks" if giant_killer else "",
        ),
    ]
