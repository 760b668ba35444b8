"""
web.py - Serve a built dashboard next to the API.

The build directory is mounted at "/" after every API route, so /api/*
always wins. Unknown non-API GET paths get index.html so client-side
routes survive a page reload.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("coordinator")


def mount_dashboard(app: FastAPI, web_dir: str):
    index_path = os.path.join(web_dir, "index.html")

    async def spa_fallback(request, exc: StarletteHTTPException):
        if (
            exc.status_code != 404
            or request.url.path.startswith("/api/")
            or request.method not in ("GET", "HEAD")
            or not os.path.isfile(index_path)
        ):
            return await http_exception_handler(request, exc)
        return FileResponse(index_path)

    app.mount("/", StaticFiles(directory=web_dir, html=True), name="dashboard")
    app.add_exception_handler(StarletteHTTPException, spa_fallback)
    logger.info("Serving dashboard from %s", web_dir)
