# ladder/errors.py

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ladder.pending_queue import DrainResult


class LadderError(Exception):
    """Base class for every error raised by the ladder client."""


class NetworkError(LadderError):
    """Raised on transport failure or a non-success HTTP status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MalformedResponseError(LadderError):
    """Raised when the ladder API answers with an unexpected payload shape."""


class RejectedError(LadderError):
    """Raised when the ladder API explicitly refuses a submission."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class StorageError(LadderError):
    """Local store failure. Recorded and logged, never raised to callers."""


class DrainInterruptedError(LadderError):
    """Raised when a queue drain stops on a failed submission.

    Progress made before the failure is already committed and reported in
    ``result``; the failing submission is available as ``__cause__``.
    """

    def __init__(self, result: "DrainResult", message: str):
        super().__init__(message)
        self.result = result
