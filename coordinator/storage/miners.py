import json
import logging
from typing import List, Optional

import aiosqlite

logger = logging.getLogger("storage")

_COLUMNS = (
    "id, miner_id, worker_id, hostname, ip, cpu_model, cpu_family, "
    "cores, os, arch, xmrig_version, agent_version, uptime_seconds, "
    "hashrate_current, hashrate_average, hashrate_max, config_json, last_seen"
)


def miner_identity(report: dict) -> str:
    """Row key for a report: miner_id, falling back to worker_id."""
    return report.get("miner_id") or report.get("worker_id") or ""


def _row_to_dict(row) -> dict:
    config = json.loads(row[16]) if row[16] else {}
    return {
        "id": row[0],
        "miner_id": row[1],
        "worker_id": row[2],
        "hostname": row[3],
        "ip": row[4],
        "cpu_model": row[5],
        "cpu_family": row[6],
        "cores": row[7],
        "os": row[8],
        "arch": row[9],
        "xmrig_version": row[10],
        "agent_version": row[11],
        "uptime_seconds": row[12],
        "hashrate": {
            "current": row[13],
            "average": row[14],
            "max": row[15],
        },
        "config": config or None,
        "last_seen": row[17],
    }


class MinerRepo:
    """Upsert and read operations for the miners table.

    Methods never commit; the StorageManager owns the transaction.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def upsert(self, report: dict, now: float) -> str:
        miner_key = miner_identity(report)
        hashrate = report.get("hashrate") or {}
        config_json = json.dumps(report.get("config") or {})
        await self._db.execute(
            f"INSERT INTO miners ({_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET "
            "miner_id=excluded.miner_id, worker_id=excluded.worker_id, "
            "hostname=excluded.hostname, ip=excluded.ip, "
            "cpu_model=excluded.cpu_model, cpu_family=excluded.cpu_family, "
            "cores=excluded.cores, os=excluded.os, arch=excluded.arch, "
            "xmrig_version=excluded.xmrig_version, agent_version=excluded.agent_version, "
            "uptime_seconds=excluded.uptime_seconds, "
            "hashrate_current=excluded.hashrate_current, "
            "hashrate_average=excluded.hashrate_average, "
            "hashrate_max=excluded.hashrate_max, "
            "config_json=excluded.config_json, last_seen=excluded.last_seen",
            (
                miner_key,
                report.get("miner_id") or "",
                report.get("worker_id") or "",
                report.get("hostname") or "",
                report.get("ip") or "",
                report.get("cpu_model") or "",
                report.get("cpu_family") or "",
                int(report.get("cores") or 0),
                report.get("os") or "",
                report.get("arch") or "",
                report.get("xmrig_version") or "",
                report.get("agent_version") or "",
                int(report.get("uptime_seconds") or 0),
                float(hashrate.get("current") or 0.0),
                float(hashrate.get("average") or 0.0),
                float(hashrate.get("max") or 0.0),
                config_json,
                now,
            ),
        )
        return miner_key

    async def get(self, miner_key: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM miners WHERE id = ?", (miner_key,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_dict(row)

    async def list_all(self) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLUMNS} FROM miners ORDER BY hashrate_current DESC, id"
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_dict(row))
        return results
