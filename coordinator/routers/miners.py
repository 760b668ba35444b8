"""Miners router: /api/miners/* fleet queries and config override lifecycle."""

import logging
from typing import Any, Dict

import aiosqlite
from fastapi import APIRouter, Body, Depends, HTTPException
from starlette.requests import Request

from coordinator.deps import get_server, require_agent
from coordinator.models import has_non_finite
from coordinator.monitoring import backfill_cpu_fields

logger = logging.getLogger("api")

router = APIRouter()


@router.get("/api/miners")
async def list_miners(request: Request):
    srv = get_server(request)
    try:
        return await srv.storage.get_miners()
    except aiosqlite.Error:
        logger.exception("Failed to list miners")
        raise HTTPException(status_code=500, detail="failed to get miners")


@router.get("/api/miners/{miner_id}")
async def get_miner(request: Request, miner_id: str):
    srv = get_server(request)
    try:
        miner = await srv.storage.get_miner(miner_id)
        if miner is None:
            raise HTTPException(status_code=404, detail="miner not found")
        pending = await srv.storage.get_config_override(miner_id)
        last = None
        if pending is None and miner["config"] is not None:
            last = await srv.storage.get_last_override(miner_id)
    except aiosqlite.Error:
        logger.exception("Failed to read miner %s", miner_id)
        raise HTTPException(status_code=500, detail="failed to get miner")

    # Show the desired state while an override is in flight.
    if pending is not None:
        miner["config"] = pending
    elif last is not None:
        miner["config"] = backfill_cpu_fields(miner["config"], last)
    return miner


@router.put("/api/miners/{miner_id}/config")
async def set_config(request: Request, miner_id: str, override: Dict[str, Any] = Body(...)):
    srv = get_server(request)
    if has_non_finite(override):
        raise HTTPException(status_code=400, detail="invalid request: config contains a non-finite number")
    try:
        await srv.storage.set_config_override(miner_id, override)
    except aiosqlite.Error:
        logger.exception("Failed to store config override for %s", miner_id)
        raise HTTPException(status_code=500, detail="failed to set config")
    logger.info("Stored config override for %s", miner_id)
    return {"ok": True}


@router.delete("/api/miners/{miner_id}/config")
async def delete_config(request: Request, miner_id: str):
    srv = get_server(request)
    try:
        await srv.storage.delete_config_override(miner_id)
    except aiosqlite.Error:
        logger.exception("Failed to delete config override for %s", miner_id)
        raise HTTPException(status_code=500, detail="failed to delete config")
    logger.info("Deleted config override for %s", miner_id)
    return {"ok": True}


@router.get("/api/miners/{miner_id}/config/pending", dependencies=[Depends(require_agent)])
async def get_pending_config(request: Request, miner_id: str):
    srv = get_server(request)
    try:
        override = await srv.storage.get_config_override(miner_id)
    except aiosqlite.Error:
        logger.exception("Failed to read pending override for %s", miner_id)
        raise HTTPException(status_code=500, detail="failed to get pending config")
    response = {"ok": True}
    if override is not None:
        response["config_override"] = override
    return response


@router.post("/api/miners/{miner_id}/config/ack", dependencies=[Depends(require_agent)])
async def ack_config(request: Request, miner_id: str):
    srv = get_server(request)
    try:
        await srv.storage.mark_config_applied(miner_id)
    except aiosqlite.Error:
        logger.exception("Failed to ack config override for %s", miner_id)
        raise HTTPException(status_code=500, detail="failed to ack config")
    logger.info("Config override acknowledged by %s", miner_id)
    return {"ok": True}
