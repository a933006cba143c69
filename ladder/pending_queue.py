# ladder/pending_queue.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Union

from ladder.errors import DrainInterruptedError, LadderError
from ladder.models import PendingMatch
from ladder.store import STORAGE_KEYS, LocalStore

logger = logging.getLogger(__name__)

SubmitFn = Callable[[PendingMatch], Any]


@dataclass(frozen=True)
class DrainResult:
    synced: int
    remaining: int

    def to_dict(self) -> dict:
        return {"synced": self.synced, "remaining": self.remaining}


class PendingQueue:
    """Durable FIFO of submissions waiting for the server to confirm them.

    Entries are compared structurally (date, challenger, defender, winner,
    score), never by position, so removal stays correct even if another
    writer touched the persisted list in between.
    """

    def __init__(self, store: LocalStore, key: str = STORAGE_KEYS["pending"]):
        self.store = store
        self.key = key

    def items(self) -> List[PendingMatch]:
        data = self.store.get_json(self.key, default=[])
        if not isinstance(data, list):
            logger.warning("Pending queue entry is not a list; treating it as empty")
            return []
        return [PendingMatch.from_mapping(raw) for raw in data if isinstance(raw, Mapping)]

    def _save(self, items: List[PendingMatch]) -> bool:
        return self.store.set_json(self.key, [item.to_dict() for item in items])

    def count(self) -> int:
        return len(self.items())

    def enqueue(self, match: Union[PendingMatch, Mapping[str, Any]]) -> bool:
        """Append ``match`` to the tail. A structural duplicate is not added twice."""
        entry = match if isinstance(match, PendingMatch) else PendingMatch.from_mapping(match)
        items = self.items()
        if entry in items:
            logger.debug("Submission already queued: %s vs %s", entry.challenger, entry.defender)
            return True
        items.append(entry)
        saved = self._save(items)
        if saved:
            logger.info("Queued submission %s vs %s (%d pending)", entry.challenger, entry.defender, len(items))
        return saved

    def remove(self, match: PendingMatch) -> int:
        """Drop every entry structurally equal to ``match``; returns how many went."""
        items = self.items()
        kept = [item for item in items if item != match]
        removed = len(items) - len(kept)
        if removed:
            self._save(kept)
        return removed

    def clear(self) -> bool:
        return self.store.delete(self.key)

    def drain(self, submit: SubmitFn, max_attempts: Optional[int] = None) -> DrainResult:
        """Submit queued entries in order, oldest first.

        Stops at ``max_attempts`` submissions or when the queue is empty. The
        first failure ends the drain: entries already confirmed stay removed,
        nothing after the failing entry is tried, and DrainInterruptedError is
        raised with the partial result.

        Callers must not run two drains at once; nothing here serializes them.
        """
        snapshot = self.items()
        if max_attempts is not None:
            snapshot = snapshot[: max(0, max_attempts)]

        synced = 0
        for entry in snapshot:
            if entry not in self.items():
                logger.debug("Skipping %s vs %s: no longer queued", entry.challenger, entry.defender)
                continue
            try:
                submit(entry)
            except LadderError as exc:
                result = DrainResult(synced=synced, remaining=self.count())
                logger.warning(
                    "Pending sync stopped after %d of %d: %s", synced, len(snapshot), exc
                )
                raise DrainInterruptedError(result, f"Pending sync stopped: {exc}") from exc
            self.remove(entry)
            synced += 1

        result = DrainResult(synced=synced, remaining=self.count())
        if synced:
            logger.info("Synced %d pending submission(s); %d remaining", result.synced, result.remaining)
        return result
