# ladder/eligibility.py
"""
Client-side approximation of who a player may challenge next.

Advisory only: the ladder server re-validates every submission, so a
disagreement here just means the form offered a different list.

Movement rule, for a challenger at rank r on a ladder of N players:
  - targets are ranks r-1, r-2 and r+1 that fall inside 1..N;
  - rank 1 can only be challenged from rank 2;
  - the challenger's most recent opponent is left out.
If the challenger's rank is unknown, everyone else is offered instead.
"""

from typing import Dict, Iterable, List, Optional, Set

from ladder.models import Match, Player, Snapshot, date_sort_key, safe_text

RANK_OFFSETS = (-1, -2, 1)
TOP_RANK = 1


def allowed_ranks(rank: int, player_count: int, champion_guard: bool = True) -> Set[int]:
    if rank <= 0:
        return set()
    ranks = {rank + offset for offset in RANK_OFFSETS}
    ranks = {r for r in ranks if 1 <= r <= player_count and r != rank}
    if champion_guard and rank - TOP_RANK > 1:
        ranks.discard(TOP_RANK)
    return ranks


def last_opponent(matches: Iterable[Match], name: str) -> Optional[str]:
    """Opponent in the most recent match involving ``name``."""
    name = safe_text(name)
    latest: Optional[Match] = None
    for match in matches:
        if not match.involves(name):
            continue
        if latest is None or date_sort_key(match.date) >= date_sort_key(latest.date):
            latest = match
    if latest is None:
        return None
    return latest.opponent_of(name) or None


def allowed_defenders(snapshot: Snapshot, challenger: str, champion_guard: bool = True) -> List[str]:
    """Names ``challenger`` may challenge now, ordered by rank ascending."""
    challenger = safe_text(challenger)
    players = sorted(snapshot.players, key=lambda p: (p.rank <= 0, p.rank))
    me = snapshot.player_by_name(challenger)
    rank = me.rank if me else 0
    repeat = last_opponent(snapshot.matches, challenger)

    if rank <= 0:
        everyone = [p.name for p in players if p.name and p.name != challenger]
        narrowed = [n for n in everyone if n != repeat]
        return narrowed or everyone

    targets = allowed_ranks(rank, len(players), champion_guard=champion_guard)
    return [
        p.name
        for p in players
        if p.rank in targets and p.name and p.name != challenger and p.name != repeat
    ]


def rank_integrity_issues(players: Iterable[Player]) -> List[str]:
    """Describe how the ranks deviate from a dense 1..N permutation."""
    players = list(players)
    issues: List[str] = []
    seen: Dict[int, str] = {}
    for player in players:
        if player.rank <= 0:
            issues.append(f"{player.name or '<unnamed>'} has no valid rank")
            continue
        if player.rank in seen:
            issues.append(f"rank {player.rank} is shared by {seen[player.rank]} and {player.name}")
        else:
            seen[player.rank] = player.name
    missing = sorted(set(range(1, len(players) + 1)) - set(seen))
    if missing:
        issues.append("missing ranks: " + ", ".join(str(r) for r in missing))
    return issues
