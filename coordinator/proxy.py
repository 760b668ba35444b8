"""
proxy.py - Read-through client for a mining-pool proxy's HTTP API.

The coordinator exposes the proxy's summary and worker list unchanged;
nothing is cached.
"""

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp

logger = logging.getLogger("proxy")

PROXY_TIMEOUT = 5.0


class ProxyError(Exception):
    """Raised when the proxy cannot be reached or returns an unusable response."""


class ProxyClient:
    def __init__(self, base_url: str, access_token: str = "", timeout: float = PROXY_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _headers(self) -> dict:
        if self._access_token:
            return {"Authorization": f"Bearer {self._access_token}"}
        return {}

    async def _get(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url, headers=self._headers()) as resp:
                    if resp.status != 200:
                        raise ProxyError(f"proxy returned status {resp.status}")
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProxyError(f"request failed: {e}") from e
        except ValueError as e:
            raise ProxyError(f"parse response: {e}") from e

    async def get_summary(self) -> dict:
        summary = await self._get("/1/summary")
        if not isinstance(summary, dict):
            raise ProxyError("parse summary: expected a JSON object")
        return summary

    async def get_workers(self) -> List[dict]:
        # Depending on version the proxy wraps the list in {"workers": [...]}
        body = await self._get("/1/workers")
        if isinstance(body, dict) and isinstance(body.get("workers"), list):
            return body["workers"]
        if isinstance(body, list):
            return body
        raise ProxyError("parse workers: unexpected response shape")


def build_proxy_client(base_url: str, access_token: str = "") -> Optional[ProxyClient]:
    if not base_url:
        return None
    logger.info("Mining proxy API: %s", base_url)
    return ProxyClient(base_url, access_token)
