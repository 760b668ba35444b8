"""
coordinator_client.py - Agent side of the coordinator protocol.

Every call is a single bounded attempt. Failures are logged and reported
to the caller as "nothing happened"; the next tick tries again.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import aiohttp

logger = logging.getLogger("agent")

REPORT_TIMEOUT = 10.0
POLL_TIMEOUT = 5.0
ACK_TIMEOUT = 5.0


class CoordinatorClient:
    def __init__(self, server_url: str, agent_key: str = ""):
        self.server_url = server_url.rstrip("/")
        self._agent_key = agent_key

    def _headers(self) -> dict:
        if self._agent_key:
            return {"Authorization": f"Bearer {self._agent_key}"}
        return {}

    def _miner_url(self, miner_id: str, suffix: str) -> str:
        return f"{self.server_url}/api/miners/{quote(miner_id, safe='')}{suffix}"

    async def send_report(self, report: dict) -> Optional[dict]:
        """POST a heartbeat report; returns the response body on HTTP 200."""
        url = f"{self.server_url}/api/report"
        timeout = aiohttp.ClientTimeout(total=REPORT_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=report, headers=self._headers()) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        logger.warning("Server returned %d: %s", resp.status, body[:200])
                        return None
                    body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Report failed: %s", e)
            return None
        return body if isinstance(body, dict) else None

    async def get_pending(self, miner_id: str) -> Optional[dict]:
        """Pending override for this miner, or None."""
        url = self._miner_url(miner_id, "/config/pending")
        timeout = aiohttp.ClientTimeout(total=POLL_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self._headers()) as resp:
                    if resp.status != 200:
                        logger.debug("Config poll returned %d", resp.status)
                        return None
                    body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("Config poll failed: %s", e)
            return None
        return extract_override(body)

    async def ack(self, miner_id: str) -> bool:
        url = self._miner_url(miner_id, "/config/ack")
        timeout = aiohttp.ClientTimeout(total=ACK_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, headers=self._headers()) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        logger.warning("Ack failed (HTTP %d): %s", resp.status, body[:200])
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Failed to ack config: %s", e)
            return False
        logger.info("Config override acknowledged")
        return True


def extract_override(body) -> Optional[dict]:
    if not isinstance(body, dict):
        return None
    override = body.get("config_override")
    return override if isinstance(override, dict) else None
