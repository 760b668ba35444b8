"""Proxy router: /api/proxy/* passthrough to the mining-pool proxy."""

from fastapi import APIRouter, HTTPException
from starlette.requests import Request

from coordinator.deps import get_server
from coordinator.proxy import ProxyError

router = APIRouter()


def _require_proxy(srv):
    if srv.proxy is None:
        raise HTTPException(status_code=503, detail="proxy not configured")
    return srv.proxy


@router.get("/api/proxy/summary")
async def proxy_summary(request: Request):
    proxy = _require_proxy(get_server(request))
    try:
        return await proxy.get_summary()
    except ProxyError as e:
        raise HTTPException(status_code=502, detail=f"failed to get proxy summary: {e}")


@router.get("/api/proxy/workers")
async def proxy_workers(request: Request):
    proxy = _require_proxy(get_server(request))
    try:
        return await proxy.get_workers()
    except ProxyError as e:
        raise HTTPException(status_code=502, detail=f"failed to get proxy workers: {e}")
