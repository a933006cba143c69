# ladder/snapshot_cache.py

import logging
from typing import Optional

from ladder.models import Snapshot, normalize_snapshot
from ladder.store import STORAGE_KEYS, LocalStore

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Last-known ladder state, kept for offline paints."""

    def __init__(self, store: LocalStore, key: str = STORAGE_KEYS["last_state"]):
        self.store = store
        self.key = key

    def load(self) -> Optional[Snapshot]:
        """Return the cached snapshot, or None when missing or malformed."""
        data = self.store.get_json(self.key)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Ignoring cached state: expected an object, got %s", type(data).__name__)
            return None
        players = data.get("players")
        matches = data.get("matches")
        if not isinstance(players, list) or not isinstance(matches, list):
            logger.warning("Ignoring cached state: players/matches are not arrays")
            return None
        return normalize_snapshot(players, matches)

    def save(self, snapshot: Snapshot) -> bool:
        """Persist ``snapshot``. Best effort: returns False instead of raising."""
        saved = self.store.set_json(self.key, snapshot.to_dict())
        if not saved:
            logger.warning("Snapshot cache not updated; continuing without it")
        return saved

    def clear(self) -> bool:
        return self.store.delete(self.key)
