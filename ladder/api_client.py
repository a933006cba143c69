from __future__ import annotations

import json
import logging
import time
from http.client import HTTPException
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ladder.errors import MalformedResponseError, NetworkError, RejectedError
from ladder.models import PendingMatch, Snapshot, normalize_snapshot, safe_text

logger = logging.getLogger(__name__)


class LadderAPIClient:
    """Gateway to the spreadsheet-backed ladder web app.

    GET returns ``{players, matches}``; POST ``{action: "submitMatch", ...}``
    returns ``{ok, players?, matches?}`` or ``{ok: false, error}``.
    """

    HEADERS = {
        "User-Agent": "ladder-client/1.0",
        "Accept": "application/json, text/plain, */*",
    }
    # Apps Script web apps skip the CORS preflight for text/plain bodies.
    POST_CONTENT_TYPE = "text/plain;charset=utf-8"

    def __init__(
        self,
        api_url: str,
        timeout_seconds: float = 20,
        rate_limit_sleep_seconds: float = 10.0,
    ):
        if not safe_text(api_url):
            raise ValueError("A ladder API URL is required")
        self.api_url = safe_text(api_url)
        self.timeout_seconds = timeout_seconds
        self.rate_limit_sleep_seconds = rate_limit_sleep_seconds

    def _open_json(self, req: Request, retry_429: bool = True) -> Any:
        try:
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except HTTPError as exc:
            if exc.code == 429 and retry_429:
                logger.warning("Ladder API rate limited; retrying once")
                time.sleep(self.rate_limit_sleep_seconds)
                return self._open_json(req, retry_429=False)
            raise NetworkError(f"HTTP {exc.code}", status=exc.code) from exc
        except (URLError, OSError, HTTPException) as exc:
            reason = getattr(exc, "reason", exc)
            raise NetworkError(f"Network unavailable: {reason}") from exc

        # UnicodeDecodeError is a ValueError.
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise MalformedResponseError("Ladder API returned invalid JSON") from exc

    def _get_json(self, url: str) -> Any:
        req = Request(url, headers=self.HEADERS, method="GET")
        return self._open_json(req)

    def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        headers = dict(self.HEADERS)
        headers["Content-Type"] = self.POST_CONTENT_TYPE
        data = json.dumps(payload).encode("utf-8")
        req = Request(url, data=data, headers=headers, method="POST")
        return self._open_json(req)

    @staticmethod
    def parse_state(payload: Any) -> Snapshot:
        if not isinstance(payload, dict):
            raise MalformedResponseError("Bad API response: expected an object")
        players = payload.get("players")
        matches = payload.get("matches")
        if not isinstance(players, list) or not isinstance(matches, list):
            raise MalformedResponseError("Bad API response: players/matches must be arrays")
        return normalize_snapshot(players, matches)

    @staticmethod
    def build_submit_payload(candidate: PendingMatch, pin: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"action": "submitMatch", "match": candidate.to_dict()}
        pin = safe_text(pin)
        if pin:
            payload["pin"] = pin
        return payload

    @staticmethod
    def parse_submit_response(payload: Any) -> Optional[Snapshot]:
        """Return the authoritative snapshot, or None if the server sent no state.

        A success payload without both arrays leaves the caller's state alone.
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError("Bad submit response: expected an object")
        if payload.get("ok") is not True:
            raise RejectedError(safe_text(payload.get("error")) or "Submit failed")
        players = payload.get("players")
        matches = payload.get("matches")
        if isinstance(players, list) and isinstance(matches, list):
            return normalize_snapshot(players, matches)
        return None

    def fetch_state(self) -> Snapshot:
        snapshot = self.parse_state(self._get_json(self.api_url))
        logger.debug(
            "Fetched ladder state: %d players, %d matches", len(snapshot.players), len(snapshot.matches)
        )
        return snapshot

    def submit_match(self, candidate: PendingMatch, pin: Optional[str] = None) -> Optional[Snapshot]:
        payload = self.build_submit_payload(candidate, pin)
        return self.parse_submit_response(self._post_json(self.api_url, payload))
