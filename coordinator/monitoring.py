"""
monitoring.py - Miner liveness classification and fleet aggregation.

Status is never stored: it is derived from the time elapsed since the
miner's last successful report every time a row is read.
"""

import copy
from typing import List, Optional

ONLINE_THRESHOLD = 90  # seconds since last report
OFFLINE_THRESHOLD = 300
DEFAULT_TOP_MINERS = 5

STATUS_ONLINE = "online"
STATUS_STALE = "stale"
STATUS_OFFLINE = "offline"

# Fields the mining process accepts in a config PUT but omits when echoing
# its live config back.
BACKFILL_CPU_FIELDS = ("max-threads-hint",)


def miner_status(last_seen: float, now: float) -> str:
    elapsed = now - last_seen
    if elapsed < ONLINE_THRESHOLD:
        return STATUS_ONLINE
    if elapsed < OFFLINE_THRESHOLD:
        return STATUS_STALE
    return STATUS_OFFLINE


def with_status(miner: dict, now: float) -> dict:
    miner["status"] = miner_status(miner["last_seen"], now)
    return miner


def build_overview(miners: List[dict], top_n: int = DEFAULT_TOP_MINERS) -> dict:
    """Aggregate a status-annotated miner list, already sorted by current hashrate."""
    active = 0
    stale = 0
    total_hashrate = 0.0
    average_hashrate = 0.0
    for m in miners:
        if m["status"] == STATUS_ONLINE:
            active += 1
            total_hashrate += m["hashrate"]["current"]
            average_hashrate += m["hashrate"]["average"]
        elif m["status"] == STATUS_STALE:
            stale += 1
    return {
        "total_miners": len(miners),
        "active_miners": active,
        "stale_miners": stale,
        "offline_miners": len(miners) - active - stale,
        "total_hashrate": round(total_hashrate, 2),
        "average_hashrate": round(average_hashrate, 2),
        "top_miners": miners[:max(0, top_n)],
    }


def backfill_cpu_fields(live: Optional[dict], override: Optional[dict]) -> Optional[dict]:
    """Copy CPU fields the mining process drops from its echo out of the last override.

    Returns a new document; ``live`` is left untouched.
    """
    if not live or not override:
        return live
    live_cpu = live.get("cpu")
    override_cpu = override.get("cpu")
    if not isinstance(live_cpu, dict) or not isinstance(override_cpu, dict):
        return live
    merged = copy.deepcopy(live)
    for key in BACKFILL_CPU_FIELDS:
        if key not in live_cpu and key in override_cpu:
            merged["cpu"][key] = override_cpu[key]
    return merged
