"""Report router: POST /api/report, the agent heartbeat endpoint."""

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from coordinator.deps import get_server, require_agent
from coordinator.models import AgentReport

logger = logging.getLogger("api")

router = APIRouter()


@router.post("/api/report", dependencies=[Depends(require_agent)])
async def submit_report(request: Request, report: AgentReport):
    srv = get_server(request)
    try:
        miner_key = await srv.storage.upsert_miner(report.model_dump())
    except aiosqlite.Error:
        logger.exception("Failed to store report from %s", report.miner_id or report.worker_id)
        raise HTTPException(status_code=500, detail="failed to store report")

    response = {"ok": True}
    try:
        override = await srv.storage.get_config_override(miner_key)
    except aiosqlite.Error:
        # The report itself is stored; the agent's poll loop will pick the override up.
        logger.exception("Failed to read pending override for %s", miner_key)
        override = None
    if override is not None:
        response["config_override"] = override
        logger.info("Dispatching config override to %s", miner_key)
    return response
