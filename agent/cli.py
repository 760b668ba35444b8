"""
cli.py - Agent entry point.

Usage:
    python -m agent --server-url http://coordinator:8080 [--agent-key SECRET]
        [--miner-runtime-config /opt/miner/config.json]

Every flag also reads a MINERFLEET_* environment variable as its default.
"""

import argparse
import asyncio
import logging
import os
import signal
from typing import Optional

from agent import __version__
from agent.agent import Agent
from agent.config import (
    CONFIG_POLL_INTERVAL,
    DEFAULT_MINER_API_HOST,
    DEFAULT_MINER_API_PORT,
    HEARTBEAT_INTERVAL,
    STARTUP_DELAY,
    AgentConfig,
    http_settings_from_config,
    read_runtime_config,
)
from agent.coordinator_client import CoordinatorClient
from agent.host import probe_host
from agent.miner_api import LocalMinerClient

logger = logging.getLogger("agent")

ENV_PREFIX = "MINERFLEET_"


def _env(name: str, default: str = "") -> str:
    return os.environ.get(ENV_PREFIX + name, default)


def _env_port(name: str) -> Optional[int]:
    raw = _env(name)
    return int(raw) if raw else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mining fleet agent")
    parser.add_argument("--server-url", default=_env("SERVER_URL"), help="Coordinator base URL (required)")
    parser.add_argument("--agent-key", default=_env("AGENT_KEY"), help="Bearer key for the coordinator's agent endpoints")
    parser.add_argument("--miner-runtime-config", default=_env("MINER_RUNTIME_CONFIG"),
                        help="Mining process config file; supplies identity, HTTP port and token")
    parser.add_argument("--miner-api-host", default=_env("MINER_API_HOST", DEFAULT_MINER_API_HOST),
                        help="Local mining API host (default: 127.0.0.1)")
    parser.add_argument("--miner-api-port", type=int, default=_env_port("MINER_API_PORT"),
                        help="Local mining API port (default: from runtime config, else 8181)")
    parser.add_argument("--miner-api-token", default=_env("MINER_API_TOKEN"),
                        help="Local mining API access token (default: from runtime config)")
    parser.add_argument("--heartbeat-interval", type=float,
                        default=float(_env("HEARTBEAT_INTERVAL", str(HEARTBEAT_INTERVAL))),
                        help="Seconds between reports (default: 30)")
    parser.add_argument("--poll-interval", type=float,
                        default=float(_env("POLL_INTERVAL", str(CONFIG_POLL_INTERVAL))),
                        help="Seconds between pending-config polls (default: 3)")
    parser.add_argument("--startup-delay", type=float,
                        default=float(_env("STARTUP_DELAY", str(STARTUP_DELAY))),
                        help="Seconds to wait before the first report (default: 5)")
    return parser


def config_from_args(args: argparse.Namespace) -> AgentConfig:
    """Merge flags with the runtime config file; explicit flags win."""
    port, token = http_settings_from_config(read_runtime_config(args.miner_runtime_config))
    return AgentConfig(
        server_url=args.server_url,
        agent_key=args.agent_key,
        miner_api_host=args.miner_api_host,
        miner_api_port=args.miner_api_port or port or DEFAULT_MINER_API_PORT,
        miner_api_token=args.miner_api_token or token,
        runtime_config_path=args.miner_runtime_config,
        heartbeat_interval=args.heartbeat_interval,
        poll_interval=args.poll_interval,
        startup_delay=args.startup_delay,
    )


async def _run(config: AgentConfig):
    host = probe_host()
    agent = Agent(
        config,
        host,
        CoordinatorClient(config.server_url, config.agent_key),
        LocalMinerClient(config.miner_api_host, config.miner_api_port, config.miner_api_token),
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass  # Windows

    await agent.run(stop)


def main():
    """CLI entry point for the fleet agent."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = build_parser()
    args = parser.parse_args()
    if not args.server_url:
        parser.error("--server-url is required (or set MINERFLEET_SERVER_URL)")

    config = config_from_args(args)
    logger.info("Mining Fleet Agent %s", __version__)
    logger.info("Local mining API: http://%s:%d", config.miner_api_host, config.miner_api_port)
    asyncio.run(_run(config))


if __name__ == "__main__":
    main()
