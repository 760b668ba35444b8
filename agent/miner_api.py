"""
miner_api.py - Client for the mining process's embedded HTTP API.

Three calls: read the summary, read the live config, write config. How
the mining process merges a written document into its running config is
up to the mining process; the document is forwarded unchanged and only
the status code is trusted.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

logger = logging.getLogger("miner-api")

READ_TIMEOUT = 2.0
WRITE_TIMEOUT = 5.0


class LocalMinerClient:
    def __init__(self, host: str = "127.0.0.1", port: int = 8181, access_token: str = ""):
        self.base_url = f"http://{host}:{port}"
        self._access_token = access_token

    def _headers(self) -> dict:
        if self._access_token:
            return {"Authorization": f"Bearer {self._access_token}"}
        return {}

    async def _get_json(self, path: str) -> Optional[Any]:
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=READ_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self._headers()) as resp:
                    if resp.status != 200:
                        logger.debug("GET %s returned %d", path, resp.status)
                        return None
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("GET %s failed: %s", path, e)
            return None

    async def get_summary(self) -> Optional[dict]:
        summary = await self._get_json("/1/summary")
        return summary if isinstance(summary, dict) else None

    async def get_config(self) -> Optional[dict]:
        config = await self._get_json("/1/config")
        return config if isinstance(config, dict) else None

    async def put_config(self, document: dict) -> Optional[int]:
        """PUT a config document; returns the HTTP status, or None if the call failed."""
        url = f"{self.base_url}/1/config"
        timeout = aiohttp.ClientTimeout(total=WRITE_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.put(url, json=document, headers=self._headers()) as resp:
                    if resp.status not in (200, 204):
                        body = await resp.text()
                        logger.warning(
                            "Mining process rejected config (HTTP %d): %s",
                            resp.status, body[:200],
                        )
                    return resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Failed to apply config: %s", e)
            return None
