"""
server.py - Fleet coordinator entry point.

Single-process server combining:
 - SQLite persistent storage via StorageManager
 - REST API for agents and operators (FastAPI on uvicorn, port 8080)
 - Optional read-through passthrough to a mining-pool proxy
 - Hourly hashrate-history pruning
 - Optional dashboard build directory served at / (--web)

Usage:
    python -m coordinator.server [--port 8080] [--db-path data/fleet.db] [--agent-key SECRET]
        [--web dashboard/dist]
"""

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Callable, Optional

try:
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    import uvicorn
except ImportError:
    raise SystemExit(
        "ERROR: FastAPI and uvicorn are required. Install with:\n"
        "  pip install fastapi uvicorn pydantic"
    )

from coordinator import __version__
from coordinator.auth import AgentAuth
from coordinator.proxy import ProxyClient, build_proxy_client
from coordinator.routers import register_all_routers
from coordinator.storage import StorageManager
from coordinator.web import mount_dashboard

logger = logging.getLogger("coordinator")

PRUNE_INTERVAL = 3600  # seconds
DEFAULT_HISTORY_RETENTION_HOURS = 7 * 24
ENV_PREFIX = "MINERFLEET_"


async def _validation_error_handler(request, exc: RequestValidationError):
    errors = exc.errors()
    reason = errors[0].get("msg", "invalid request body") if errors else "invalid request body"
    return JSONResponse(status_code=400, content={"detail": f"invalid request: {reason}"})


class CoordinatorServer:
    """Fleet coordinator: storage, agent auth, proxy passthrough and REST API."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 8080,
        db_path: str = "data/fleet.db",
        agent_key: str = "",
        proxy_url: str = "",
        proxy_api_token: str = "",
        history_retention_hours: float = DEFAULT_HISTORY_RETENTION_HOURS,
        prune_interval: float = PRUNE_INTERVAL,
        web_dir: str = "",
        clock: Optional[Callable[[], float]] = None,
    ):
        self.host = host
        self.port = port
        self.history_retention_sec = history_retention_hours * 3600
        self.prune_interval = prune_interval

        self.storage = StorageManager(db_path, clock=clock)
        self.auth = AgentAuth(agent_key)
        self.proxy: Optional[ProxyClient] = build_proxy_client(proxy_url, proxy_api_token)
        self._prune_task: Optional[asyncio.Task] = None

        self.app = FastAPI(
            title="Mining Fleet Coordinator", version=__version__, lifespan=self._lifespan,
        )
        self.app.state.server = self
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )
        self.app.add_exception_handler(RequestValidationError, _validation_error_handler)
        register_all_routers(self.app, service_root=not web_dir)
        if web_dir:
            mount_dashboard(self.app, web_dir)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.storage.initialize()
        self._prune_task = asyncio.create_task(self._history_pruner())
        try:
            yield
        finally:
            self._prune_task.cancel()
            try:
                await self._prune_task
            except asyncio.CancelledError:
                pass
            await self.storage.close()

    # -------------------------------------------------------------------
    # History pruning
    # -------------------------------------------------------------------

    async def _history_pruner(self):
        """Periodically drop hashrate samples past the retention window."""
        while True:
            await asyncio.sleep(self.prune_interval)
            try:
                await self.storage.prune_history(self.history_retention_sec)
            except Exception:
                logger.exception("Failed to prune hashrate history")

    # -------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------

    async def start(self):
        """Serve the API until uvicorn exits; storage lives inside the app lifespan."""
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="info",
        )
        self._uvicorn_server = uvicorn.Server(config)
        logger.info("REST API starting on %s:%d", self.host, self.port)
        await self._uvicorn_server.serve()


def _env(name: str, default: str = "") -> str:
    return os.environ.get(ENV_PREFIX + name, default)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mining fleet coordinator")
    parser.add_argument("--host", default=_env("HOST", "0.0.0.0"), help="Listen address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=int(_env("PORT", "8080")), help="REST API port (default: 8080)")
    parser.add_argument("--db-path", default=_env("DB_PATH", "data/fleet.db"), help="SQLite database path (default: data/fleet.db)")
    parser.add_argument("--agent-key", default=_env("AGENT_KEY"), help="Shared secret agents must present as a bearer token")
    parser.add_argument("--proxy-url", default=_env("PROXY_URL"), help="Mining-pool proxy API URL (e.g. http://127.0.0.1:8080)")
    parser.add_argument("--proxy-api-token", default=_env("PROXY_API_TOKEN"), help="Access token for the proxy API")
    parser.add_argument(
        "--history-retention-hours", type=float,
        default=float(_env("HISTORY_RETENTION_HOURS", str(DEFAULT_HISTORY_RETENTION_HOURS))),
        help="Hashrate history retention (default: 168)",
    )
    parser.add_argument("--web", default=_env("WEB_DIR"), help="Dashboard build directory to serve at / (SPA fallback to index.html)")
    return parser


def main():
    """CLI entry point for the fleet coordinator."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = build_parser()
    args = parser.parse_args()
    if args.web and not os.path.isdir(args.web):
        parser.error(f"--web directory not found: {args.web}")

    server = CoordinatorServer(
        host=args.host, port=args.port, db_path=args.db_path,
        agent_key=args.agent_key, proxy_url=args.proxy_url,
        proxy_api_token=args.proxy_api_token,
        history_retention_hours=args.history_retention_hours,
        web_dir=args.web,
    )

    logger.info("=" * 60)
    logger.info("  Mining Fleet Coordinator %s", __version__)
    logger.info("  REST API:    http://%s:%d", args.host, args.port)
    logger.info("  Database:    %s", args.db_path)
    logger.info("  Agent auth:  %s", "enabled" if args.agent_key else "disabled")
    logger.info("  Proxy:       %s", args.proxy_url or "not configured")
    logger.info("  Dashboard:   %s", args.web or "not served")
    logger.info("=" * 60)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
