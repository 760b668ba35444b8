"""Agent settings and the mining process's runtime config file."""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger("agent")

HEARTBEAT_INTERVAL = 30.0
CONFIG_POLL_INTERVAL = 3.0
STARTUP_DELAY = 5.0
DEFAULT_MINER_API_HOST = "127.0.0.1"
DEFAULT_MINER_API_PORT = 8181


@dataclass
class AgentConfig:
    server_url: str
    agent_key: str = ""
    miner_api_host: str = DEFAULT_MINER_API_HOST
    miner_api_port: int = DEFAULT_MINER_API_PORT
    miner_api_token: str = ""
    runtime_config_path: str = ""
    heartbeat_interval: float = HEARTBEAT_INTERVAL
    poll_interval: float = CONFIG_POLL_INTERVAL
    startup_delay: float = STARTUP_DELAY

    def __post_init__(self):
        self.server_url = self.server_url.rstrip("/")


def read_runtime_config(path: str) -> Optional[dict]:
    """Parse the mining process's runtime config; None when missing or unreadable."""
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("Cannot read runtime config %s: %s", path, e)
        return None
    return raw if isinstance(raw, dict) else None


def identity_from_config(doc: Optional[dict]) -> Tuple[str, str]:
    """(miner_id, worker_id) from a config document's ``api`` section."""
    if not doc:
        return "", ""
    api = doc.get("api")
    if not isinstance(api, dict):
        return "", ""
    miner_id = api.get("id")
    worker_id = api.get("worker-id")
    return (
        miner_id if isinstance(miner_id, str) else "",
        worker_id if isinstance(worker_id, str) else "",
    )


def http_settings_from_config(doc: Optional[dict]) -> Tuple[Optional[int], str]:
    """(port, access token) of the mining process's HTTP API, if the config names them."""
    if not doc:
        return None, ""
    http = doc.get("http")
    if not isinstance(http, dict):
        return None, ""
    port = http.get("port")
    token = http.get("access-token")
    return (
        int(port) if isinstance(port, (int, float)) and not isinstance(port, bool) else None,
        token if isinstance(token, str) else "",
    )
