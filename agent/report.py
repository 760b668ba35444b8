"""Assemble the heartbeat report from host facts and the mining process's state."""

import re
from typing import List, Optional

from agent.host import HostInfo

_DASHED_IPV4 = re.compile(r"^\d{1,3}(-\d{1,3}){3}$")


def hashrate_from_summary(summary: Optional[dict]) -> Optional[dict]:
    """{current, average, max} from ``hashrate.total``; None until three values exist."""
    if not summary:
        return None
    hashrate = summary.get("hashrate")
    if not isinstance(hashrate, dict):
        return None
    total: List = hashrate.get("total") or []
    if not isinstance(total, list) or len(total) < 3:
        return None
    # Windows that have not filled yet are reported as null
    values = [float(v) if isinstance(v, (int, float)) else 0.0 for v in total[:3]]
    return {"current": values[0], "average": values[1], "max": values[2]}


def worker_id_to_ip(worker_id: str) -> str:
    # Worker ids are conventionally the host's address with dashes, e.g. 10-0-0-5
    if _DASHED_IPV4.match(worker_id):
        return worker_id.replace("-", ".")
    return ""


def build_report(
    host: HostInfo,
    version: str,
    miner_id: str = "",
    worker_id: str = "",
    summary: Optional[dict] = None,
    live_config: Optional[dict] = None,
) -> dict:
    report = {
        "miner_id": miner_id,
        "worker_id": worker_id,
        "hostname": host.hostname,
        "ip": host.ip or worker_id_to_ip(worker_id),
        "cpu_model": host.cpu_model,
        "cpu_family": host.cpu_family,
        "cores": host.cores,
        "os": host.os,
        "arch": host.arch,
        "xmrig_version": "",
        "uptime_seconds": 0,
        "agent_version": version,
    }
    if live_config is not None:
        report["config"] = live_config
    if summary:
        report["xmrig_version"] = str(summary.get("version") or "")
        uptime = summary.get("uptime")
        if isinstance(uptime, (int, float)):
            report["uptime_seconds"] = int(uptime)
        hashrate = hashrate_from_summary(summary)
        if hashrate is not None:
            report["hashrate"] = hashrate
    return report
