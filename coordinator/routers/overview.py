"""Overview router: service root, fleet aggregate and hashrate history."""

import logging
from typing import Optional

import aiosqlite
from fastapi import APIRouter, HTTPException, Query
from starlette.requests import Request

from coordinator import __version__
from coordinator.deps import get_server
from coordinator.monitoring import DEFAULT_TOP_MINERS

logger = logging.getLogger("api")

router = APIRouter()
# Only registered when no dashboard directory owns "/".
root_router = APIRouter()

DEFAULT_HISTORY_HOURS = 24.0


def parse_hours(raw: Optional[str]) -> float:
    """Window length in hours; unparsable or non-positive values fall back to the default."""
    if not raw:
        return DEFAULT_HISTORY_HOURS
    try:
        hours = float(raw)
    except ValueError:
        return DEFAULT_HISTORY_HOURS
    if hours != hours or hours <= 0:
        return DEFAULT_HISTORY_HOURS
    return hours


@root_router.get("/")
async def root(request: Request):
    srv = get_server(request)
    return {
        "service": "Mining Fleet Coordinator",
        "version": __version__,
        "agent_auth": srv.auth.enabled,
        "proxy": srv.proxy is not None,
    }


@router.get("/api/overview")
async def overview(
    request: Request,
    top: int = Query(default=DEFAULT_TOP_MINERS, ge=0, le=100),
):
    srv = get_server(request)
    try:
        return await srv.storage.get_overview(top_n=top)
    except aiosqlite.Error:
        logger.exception("Failed to build overview")
        raise HTTPException(status_code=500, detail="failed to get overview")


@router.get("/api/hashrate/history")
async def hashrate_history(
    request: Request,
    miner_id: Optional[str] = Query(default=None, max_length=256),
    hours: Optional[str] = Query(default=None),
):
    srv = get_server(request)
    since = srv.storage.now() - parse_hours(hours) * 3600
    try:
        return await srv.storage.get_hashrate_history(miner_id or None, since)
    except aiosqlite.Error:
        logger.exception("Failed to read hashrate history")
        raise HTTPException(status_code=500, detail="failed to get history")
