"""Pydantic request/response models for the REST API."""

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def has_non_finite(value: Any) -> bool:
    """True when a decoded JSON value holds inf or NaN anywhere inside it."""
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(has_non_finite(v) for v in value.values())
    if isinstance(value, list):
        return any(has_non_finite(v) for v in value)
    return False


class HashrateData(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    current: float = 0.0
    average: float = 0.0
    max: float = 0.0


class AgentReport(BaseModel):
    """Status report posted by an agent on every heartbeat."""

    model_config = ConfigDict(allow_inf_nan=False)

    miner_id: str = ""
    worker_id: str = ""
    hostname: str = ""
    ip: str = ""
    cpu_model: str = ""
    cpu_family: str = ""
    cores: int = 0
    os: str = ""
    arch: str = ""
    xmrig_version: str = ""
    agent_version: str = ""
    uptime_seconds: int = 0
    hashrate: Optional[HashrateData] = None
    config: Optional[Dict[str, Any]] = None

    @field_validator("config")
    @classmethod
    def _finite_config(cls, value):
        # inf/NaN would be stored fine but break every JSON read of the fleet
        if value is not None and has_non_finite(value):
            raise ValueError("config contains a non-finite number")
        return value

    @model_validator(mode="after")
    def _require_identity(self):
        if not self.miner_id and not self.worker_id:
            raise ValueError("miner_id or worker_id required")
        return self
