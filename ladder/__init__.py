# ladder/__init__.py
"""
Challenge-ladder client: offline-tolerant sync with the ladder server,
a retry queue for match submissions, daily rank movement and
client-side challenge eligibility.
"""

from .client import LadderClient, StartResult, SubmitOutcome, SyncResult
from .config import LadderConfig
from .errors import (
    DrainInterruptedError,
    LadderError,
    MalformedResponseError,
    NetworkError,
    RejectedError,
    StorageError,
)
from .models import Match, PendingMatch, Player, Snapshot, build_candidate

__all__ = [
    'LadderClient',
    'LadderConfig',
    'StartResult',
    'SubmitOutcome',
    'SyncResult',
    'LadderError',
    'NetworkError',
    'MalformedResponseError',
    'RejectedError',
    'StorageError',
    'DrainInterruptedError',
    'Match',
    'PendingMatch',
    'Player',
    'Snapshot',
    'build_candidate',
]
