# ladder/client.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from ladder.api_client import LadderAPIClient
from ladder.awards import Award, compute_awards
from ladder.baseline import BaselineStrategy, BaselineTracker
from ladder.config import RECENT_MATCH_LIMIT, LadderConfig
from ladder.eligibility import allowed_defenders, rank_integrity_issues
from ladder.errors import (
    DrainInterruptedError,
    MalformedResponseError,
    NetworkError,
    RejectedError,
)
from ladder.models import Match, PendingMatch, Player, Snapshot, safe_text
from ladder.pending_queue import PendingQueue
from ladder.snapshot_cache import SnapshotCache
from ladder.store import STORAGE_KEYS, LocalStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartResult:
    source: str  # remote, cache or none
    error: Optional[str] = None

    @property
    def offline(self) -> bool:
        return self.source != "remote"


@dataclass(frozen=True)
class SubmitOutcome:
    SUBMITTED = "submitted"
    QUEUED = "queued"
    REJECTED = "rejected"

    status: str
    message: str = ""
    pending: int = 0

    def to_dict(self) -> dict:
        return {"status": self.status, "message": self.message, "pending": self.pending}


@dataclass(frozen=True)
class SyncResult:
    synced: int
    remaining: int
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"synced": self.synced, "remaining": self.remaining, "error": self.error}


class LadderClient:
    """One ladder session: in-memory state plus everything that feeds it.

    Owns the snapshot that used to live in page globals, and wires the
    cache, baseline tracker, pending queue and remote gateway together.
    """

    def __init__(
        self,
        api: Optional[LadderAPIClient],
        store: LocalStore,
        baseline_strategy: BaselineStrategy = BaselineStrategy.CALENDAR_DAY,
        queue_rejected: bool = True,
        today: Callable[[], date] = date.today,
    ):
        self.api = api
        self.store = store
        self.cache = SnapshotCache(store)
        self.tracker = BaselineTracker(store, strategy=baseline_strategy, today=today)
        self.queue = PendingQueue(store)
        self.queue_rejected = queue_rejected
        self.snapshot = Snapshot()
        self._draining = False

    @classmethod
    def from_config(cls, config: LadderConfig) -> "LadderClient":
        api = LadderAPIClient(config.api_url, timeout_seconds=config.timeout_seconds) if config.api_url else None
        return cls(
            api,
            LocalStore(config.db_path),
            baseline_strategy=config.baseline_strategy,
            queue_rejected=config.queue_rejected,
        )

    def close(self) -> None:
        self.store.close()

    def _require_api(self) -> LadderAPIClient:
        if self.api is None:
            raise NetworkError("No ladder API URL configured")
        return self.api

    def _replace(self, snapshot: Snapshot) -> None:
        """Swap in a whole new snapshot and persist it."""
        self.tracker.observe_replacement(self.snapshot.players)
        self.snapshot = snapshot
        for issue in rank_integrity_issues(snapshot.players):
            logger.warning("Ladder ranks look inconsistent: %s", issue)
        self.cache.save(snapshot)

    # --- State ---

    def start(self) -> StartResult:
        """Paint from cache, then try the server."""
        cached = self.cache.load()
        if cached is not None:
            self.snapshot = cached
        try:
            self.refresh()
        except (NetworkError, MalformedResponseError) as e:
            if cached is not None:
                logger.warning("Offline mode (showing last saved data): %s", e)
                return StartResult("cache", str(e))
            logger.error("Failed to load ladder state: %s", e)
            return StartResult("none", str(e))
        return StartResult("remote")

    def refresh(self) -> Snapshot:
        snapshot = self._require_api().fetch_state()
        self._replace(snapshot)
        return snapshot

    # --- Submissions ---

    def load_pin(self) -> str:
        return safe_text(self.store.get(STORAGE_KEYS["pin"], default=""))

    def save_pin(self, pin: str) -> bool:
        return self.store.set(STORAGE_KEYS["pin"], safe_text(pin))

    def _submit_remote(self, candidate: PendingMatch) -> None:
        snapshot = self._require_api().submit_match(candidate, pin=self.load_pin() or None)
        if snapshot is not None:
            self._replace(snapshot)

    def submit(self, candidate: PendingMatch) -> SubmitOutcome:
        """Send one match now, or keep it for a later sync if that fails."""
        try:
            self._submit_remote(candidate)
        except RejectedError as e:
            if not self.queue_rejected:
                logger.warning("Submission rejected: %s", e.reason)
                return SubmitOutcome(SubmitOutcome.REJECTED, e.reason, self.queue.count())
            self.queue.enqueue(candidate)
            return SubmitOutcome(
                SubmitOutcome.QUEUED,
                f"Saved locally. Will retry later. ({e.reason})",
                self.queue.count(),
            )
        except (NetworkError, MalformedResponseError) as e:
            self.queue.enqueue(candidate)
            logger.warning("Submission saved locally: %s", e)
            return SubmitOutcome(
                SubmitOutcome.QUEUED,
                f"Saved locally (offline). Will retry later. ({e})",
                self.queue.count(),
            )

        # A copy may be queued from an earlier failed attempt.
        self.queue.remove(candidate)
        return SubmitOutcome(SubmitOutcome.SUBMITTED, "Match submitted", self.queue.count())

    def sync_pending(self, max_attempts: Optional[int] = None) -> SyncResult:
        if self._draining:
            return SyncResult(0, self.queue.count(), "A sync is already in progress")
        self._draining = True
        try:
            result = self.queue.drain(self._submit_remote, max_attempts=max_attempts)
        except DrainInterruptedError as e:
            return SyncResult(e.result.synced, e.result.remaining, str(e.__cause__ or e))
        finally:
            self._draining = False
        return SyncResult(result.synced, result.remaining)

    def pending_count(self) -> int:
        return self.queue.count()

    def pending(self) -> List[PendingMatch]:
        return self.queue.items()

    # --- Derived views ---

    def allowed_defenders(self, challenger: str) -> List[str]:
        return allowed_defenders(self.snapshot, challenger)

    def movement_for(self, players: Optional[Iterable[Player]] = None) -> Dict[str, int]:
        players = list(self.snapshot.players if players is None else players)
        if not players:
            # An empty ladder must not become today's baseline.
            return {}
        self.tracker.ensure_baseline(players)
        return self.tracker.movement_for(players)

    def recent_matches(self, limit: int = RECENT_MATCH_LIMIT) -> List[Match]:
        return self.snapshot.recent_matches(limit)

    def awards(self) -> List[Award]:
        return compute_awards(self.snapshot)
