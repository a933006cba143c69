import asyncio
import logging
import os
import sys
from typing import Optional

from fastapi import FastAPI, HTTPException, Request

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ladder.client import LadderClient
from ladder.config import LadderConfig
from ladder.errors import MalformedResponseError, NetworkError
from ladder.models import build_candidate

logger = logging.getLogger(__name__)


async def _client(request: Request) -> LadderClient:
    client = getattr(request.app.state, "client", None)
    if client is None:
        client = LadderClient.from_config(LadderConfig.from_env())
        logger.info("Using local store at: %s", client.store.db_path)
        await asyncio.to_thread(client.start)
        request.app.state.client = client
    return client


async def _json_body(request: Request) -> dict:
    try:
        payload = await request.json()
    except Exception:
        payload = {}
    return payload if isinstance(payload, dict) else {}


def create_app(client: Optional[LadderClient] = None) -> FastAPI:
    app = FastAPI(title="Challenge Ladder")
    app.state.client = client

    @app.get("/api/state")
    async def state(request: Request) -> dict:
        ladder = await _client(request)
        body = ladder.snapshot.to_dict()
        body["pending"] = ladder.pending_count()
        return body

    @app.post("/api/refresh")
    async def refresh(request: Request) -> dict:
        ladder = await _client(request)
        try:
            snapshot = await asyncio.to_thread(ladder.refresh)
        except (NetworkError, MalformedResponseError) as e:
            raise HTTPException(status_code=502, detail=f"Failed to load: {e}")
        return {"players": len(snapshot.players), "matches": len(snapshot.matches)}

    @app.post("/api/matches")
    async def submit_match(request: Request) -> dict:
        ladder = await _client(request)
        payload = await _json_body(request)
        try:
            candidate = build_candidate(
                payload.get("challenger"),
                payload.get("defender"),
                payload.get("winner"),
                payload.get("score"),
                date=payload.get("date"),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        outcome = await asyncio.to_thread(ladder.submit, candidate)
        if outcome.status == outcome.REJECTED:
            raise HTTPException(status_code=409, detail=outcome.message)
        return outcome.to_dict()

    @app.post("/api/pending/sync")
    async def sync_pending(request: Request, max_attempts: Optional[int] = None) -> dict:
        ladder = await _client(request)
        result = await asyncio.to_thread(ladder.sync_pending, max_attempts)
        return result.to_dict()

    @app.get("/api/pending")
    async def pending(request: Request) -> dict:
        items = (await _client(request)).pending()
        return {"pending": [item.to_dict() for item in items], "count": len(items)}

    @app.get("/api/players/{name}/allowed-defenders")
    async def allowed_defenders(request: Request, name: str) -> dict:
        ladder = await _client(request)
        if not ladder.snapshot.players:
            raise HTTPException(status_code=404, detail="No ladder loaded")
        return {"challenger": name, "defenders": ladder.allowed_defenders(name)}

    @app.get("/api/movement")
    async def movement(request: Request) -> dict:
        return {"movement": (await _client(request)).movement_for()}

    @app.get("/api/matches/recent")
    async def recent_matches(request: Request, limit: int = 5) -> dict:
        safe_limit = max(1, min(limit, 100))
        matches = (await _client(request)).recent_matches(safe_limit)
        return {"matches": [m.to_dict() for m in matches], "count": len(matches)}

    @app.get("/api/awards")
    async def awards(request: Request) -> dict:
        return {"awards": [a.to_dict() for a in (await _client(request)).awards()]}

    @app.put("/api/pin")
    async def save_pin(request: Request) -> dict:
        payload = await _json_body(request)
        saved = (await _client(request)).save_pin(str(payload.get("pin") or ""))
        return {"ok": saved}

    return app


app = create_app()
