"""Router package: collects all API routers and registers them on the FastAPI app."""

from fastapi import FastAPI

from coordinator.routers import (
    overview,
    miners,
    report,
    proxy,
)


def register_all_routers(app: FastAPI, service_root: bool = True):
    if service_root:
        app.include_router(overview.root_router)
    app.include_router(overview.router)
    app.include_router(report.router)
    app.include_router(miners.router)
    app.include_router(proxy.router)
