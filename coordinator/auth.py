"""
auth.py - Shared-secret bearer authentication for agent endpoints.

Agents present ``Authorization: Bearer <agent-key>``. When no key is
configured every request is accepted, matching a fleet running on a
trusted network.
"""

import hmac
import logging

from fastapi import HTTPException

logger = logging.getLogger("auth")

BEARER_PREFIX = "Bearer "


class AgentAuth:
    """Checks agent requests against the configured shared secret."""

    def __init__(self, agent_key: str = ""):
        self._agent_key = agent_key
        if not agent_key:
            logger.warning(
                "No agent key configured; agent endpoints accept unauthenticated requests"
            )

    @property
    def enabled(self) -> bool:
        return bool(self._agent_key)

    def is_authorized(self, authorization: str) -> bool:
        if not self._agent_key:
            return True
        if not authorization.startswith(BEARER_PREFIX):
            return False
        token = authorization[len(BEARER_PREFIX):]
        return hmac.compare_digest(token.encode(), self._agent_key.encode())

    def require(self, authorization: str):
        if not self.is_authorized(authorization):
            logger.warning("Rejected agent request with missing or invalid bearer token")
            raise HTTPException(
                status_code=401,
                detail="Missing or invalid agent credentials. Pass Authorization: Bearer <agent-key>.",
            )
