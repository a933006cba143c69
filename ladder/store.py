# ladder/store.py

import json
import logging
import os
import sqlite3
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ladder.errors import StorageError

logger = logging.getLogger(__name__)

# Key names are shared with the browser client; do not rename.
STORAGE_KEYS = {
    "pin": "cs_tt_league_pin",
    "pending": "cs_tt_pending_matches_v1",
    "last_state": "cs_tt_last_state_v1",
    "daily_baseline": "cs_tt_daily_baseline_v1",
}

MEMORY_PATH = ":memory:"


class LocalStore:
    """Device-scoped key/value store backed by a single SQLite file.

    Reads and writes never raise. A failed read returns the caller's
    fallback, a failed write returns False, and the failure is kept in
    ``last_error`` so degraded mode stays observable.
    """

    def __init__(self, db_path: str = 'data/ladder.db'):
        self.db_path = self._resolve_db_path(db_path)
        self.conn: Optional[sqlite3.Connection] = None
        self.last_error: Optional[StorageError] = None
        self.init_store()

    @staticmethod
    def _resolve_db_path(db_path: str) -> str:
        """Return an absolute database path anchored to project root when relative."""
        if db_path == MEMORY_PATH:
            return db_path
        path = Path(db_path)
        if path.is_absolute():
            return str(path)

        project_root = Path(__file__).resolve().parents[1]
        return str(project_root / path)

    def init_store(self) -> None:
        """Open the connection and create the table if it doesn't exist."""
        try:
            if self.db_path != MEMORY_PATH:
                db_dir = os.path.dirname(self.db_path)
                if db_dir:
                    os.makedirs(db_dir, exist_ok=True)

            self.conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA busy_timeout = 30000")
            if self.db_path != MEMORY_PATH:
                self._set_wal_mode_best_effort()

            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key         TEXT PRIMARY KEY,
                    value       TEXT NOT NULL,
                    updated_at  TEXT
                )
            """)
            self._commit_with_retry(context="create kv_store")
        except (OSError, sqlite3.Error, RuntimeError) as e:
            self._record_failure(f"Failed to open local store at '{self.db_path}'", e)
            self.conn = None

    def _commit_with_retry(self, retries: int = 8, delay_seconds: float = 0.25, context: str = "commit") -> None:
        """
        Retry commit on transient SQLITE_BUSY/locked errors.
        """
        last_error = None
        for attempt in range(retries):
            try:
                self.conn.commit()
                return
            except sqlite3.OperationalError as e:
                last_error = e
                if "locked" not in str(e).lower() and "busy" not in str(e).lower():
                    raise
                if attempt == retries - 1:
                    break
                time.sleep(delay_seconds)
        raise RuntimeError(
            f"Failed to {context}: store remained locked after {retries} attempts ({last_error})"
        )

    def _set_wal_mode_best_effort(self, retries: int = 5, delay_seconds: float = 0.2) -> None:
        """Try to enable WAL without failing startup if the file is temporarily locked."""
        for attempt in range(retries):
            try:
                self.conn.execute("PRAGMA journal_mode = WAL")
                return
            except sqlite3.OperationalError as e:
                msg = str(e).lower()
                if "locked" not in msg and "busy" not in msg:
                    raise
                if attempt == retries - 1:
                    logger.warning("Could not enable WAL mode (store locked); continuing. (%s)", e)
                    return
                time.sleep(delay_seconds)

    def _record_failure(self, message: str, exc: Exception) -> None:
        error = StorageError(f"{message}: {exc}")
        error.__cause__ = exc
        self.last_error = error
        logger.warning("%s", error)

    @property
    def available(self) -> bool:
        return self.conn is not None

    # --- Raw string values ---

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the stored string for ``key`` or ``default``."""
        if self.conn is None:
            return default
        try:
            row = self.conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            self._record_failure(f"Failed to read '{key}'", e)
            return default
        return row["value"] if row else default

    def set(self, key: str, value: str) -> bool:
        """Write ``value`` under ``key``; last write wins."""
        if self.conn is None:
            return False
        now = datetime.now(timezone.utc).isoformat()
        try:
            self.conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now),
            )
            self._commit_with_retry(context=f"write '{key}'")
        except (sqlite3.Error, RuntimeError) as e:
            self._rollback_quietly()
            self._record_failure(f"Failed to write '{key}'", e)
            return False
        return True

    def delete(self, key: str) -> bool:
        if self.conn is None:
            return False
        try:
            self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            self._commit_with_retry(context=f"delete '{key}'")
        except (sqlite3.Error, RuntimeError) as e:
            self._rollback_quietly()
            self._record_failure(f"Failed to delete '{key}'", e)
            return False
        return True

    def _rollback_quietly(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as e:
            logger.debug("Rollback failed: %s", e)

    # --- JSON values ---

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON stored under ``key``; malformed content yields ``default``."""
        raw = self.get(key)
        if not raw:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            self._record_failure(f"Malformed JSON under '{key}'", e)
            return default

    def set_json(self, key: str, value: Any) -> bool:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            self._record_failure(f"Failed to encode '{key}'", e)
            return False
        return self.set(key, encoded)

    def close(self) -> None:
        """Close the connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
