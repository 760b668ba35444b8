from typing import List, Optional

import aiosqlite


class HistoryRepo:

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert(self, miner_key: str, hashrate: dict, now: float):
        await self._db.execute(
            "INSERT INTO hashrate_history (miner_id, timestamp, current, average, max) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                miner_key,
                now,
                float(hashrate.get("current") or 0.0),
                float(hashrate.get("average") or 0.0),
                float(hashrate.get("max") or 0.0),
            ),
        )

    async def query(self, miner_key: Optional[str], since: float) -> List[dict]:
        if miner_key:
            sql = ("SELECT miner_id, timestamp, current, average, max "
                   "FROM hashrate_history WHERE miner_id = ? AND timestamp >= ? "
                   "ORDER BY timestamp, id")
            params: tuple = (miner_key, since)
        else:
            sql = ("SELECT miner_id, timestamp, current, average, max "
                   "FROM hashrate_history WHERE timestamp >= ? "
                   "ORDER BY timestamp, id")
            params = (since,)
        results = []
        async with self._db.execute(sql, params) as cursor:
            async for row in cursor:
                results.append({
                    "miner_id": row[0],
                    "timestamp": row[1],
                    "current": row[2],
                    "average": row[3],
                    "max": row[4],
                })
        return results

    async def delete_older_than(self, cutoff: float) -> int:
        cursor = await self._db.execute(
            "DELETE FROM hashrate_history WHERE timestamp < ?", (cutoff,)
        )
        deleted = cursor.rowcount
        await cursor.close()
        return deleted
