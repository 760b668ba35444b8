import json
from typing import Optional

import aiosqlite


class OverrideRepo:
    """Operations on config_overrides; one row per miner, pending while applied_at IS NULL."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def put(self, miner_key: str, override: dict, now: float):
        await self._db.execute(
            "INSERT INTO config_overrides (miner_id, override_json, created_at, applied_at) "
            "VALUES (?, ?, ?, NULL) "
            "ON CONFLICT(miner_id) DO UPDATE SET "
            "override_json=excluded.override_json, created_at=excluded.created_at, "
            "applied_at=NULL",
            (miner_key, json.dumps(override), now),
        )

    async def get(self, miner_key: str) -> Optional[dict]:
        async with self._db.execute(
            "SELECT miner_id, override_json, created_at, applied_at "
            "FROM config_overrides WHERE miner_id = ?",
            (miner_key,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return {
            "miner_id": row[0],
            "override": json.loads(row[1]),
            "created_at": row[2],
            "applied_at": row[3],
        }

    async def get_pending(self, miner_key: str) -> Optional[dict]:
        async with self._db.execute(
            "SELECT override_json FROM config_overrides "
            "WHERE miner_id = ? AND applied_at IS NULL",
            (miner_key,),
        ) as cursor:
            row = await cursor.fetchone()
        return json.loads(row[0]) if row else None

    async def mark_applied(self, miner_key: str, now: float):
        await self._db.execute(
            "UPDATE config_overrides SET applied_at = ? "
            "WHERE miner_id = ? AND applied_at IS NULL",
            (now, miner_key),
        )

    async def delete(self, miner_key: str):
        await self._db.execute(
            "DELETE FROM config_overrides WHERE miner_id = ?", (miner_key,)
        )
