import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

try:
    import aiosqlite
except ImportError:
    raise ImportError(
        "aiosqlite is required for the storage layer. "
        "Install with: pip install aiosqlite"
    )

from coordinator.monitoring import DEFAULT_TOP_MINERS, build_overview, with_status
from coordinator.rwlock import RWLock

from ._migrate import run_migrations
from .history import HistoryRepo
from .miners import MinerRepo
from .overrides import OverrideRepo

logger = logging.getLogger("storage")

Clock = Callable[[], float]


class StorageManager:
    """Owns the database connection, the readers-writer lock and the clock.

    Every public coroutine is one fleet-state operation: mutations run under
    the exclusive lock inside a single transaction, reads under the shared
    lock. Callers never touch the repos directly.
    """

    def __init__(self, db_path: str = "data/fleet.db", clock: Optional[Clock] = None):
        self.db_path = db_path
        self._clock: Clock = clock or time.time
        self._lock = RWLock()
        self._db: Optional[aiosqlite.Connection] = None
        self.miners: Optional[MinerRepo] = None
        self.overrides: Optional[OverrideRepo] = None
        self.history: Optional[HistoryRepo] = None

    async def initialize(self):
        db_dir = os.path.dirname(self.db_path)
        if db_dir and self.db_path != ":memory:":
            os.makedirs(db_dir, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA busy_timeout=5000")
        await run_migrations(self._db, logger)

        self.miners = MinerRepo(self._db)
        self.overrides = OverrideRepo(self._db)
        self.history = HistoryRepo(self._db)

        logger.info("Storage initialized: %s", self.db_path)

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Storage closed")

    def now(self) -> float:
        return self._clock()

    @asynccontextmanager
    async def _write(self):
        async with self._lock.write():
            try:
                yield
                await self._db.commit()
            except BaseException:
                await self._db.rollback()
                raise

    # -------------------------------------------------------------------
    # Miners
    # -------------------------------------------------------------------

    async def upsert_miner(self, report: dict) -> str:
        """Insert or overwrite the reporting miner and append a history sample."""
        async with self._write():
            now = self._clock()
            miner_key = await self.miners.upsert(report, now)
            if report.get("hashrate") is not None:
                await self.history.insert(miner_key, report["hashrate"], now)
        return miner_key

    async def get_miners(self) -> List[dict]:
        async with self._lock.read():
            miners = await self.miners.list_all()
        now = self._clock()
        return [with_status(m, now) for m in miners]

    async def get_miner(self, miner_key: str) -> Optional[dict]:
        async with self._lock.read():
            miner = await self.miners.get(miner_key)
        if miner is None:
            return None
        return with_status(miner, self._clock())

    async def get_overview(self, top_n: int = DEFAULT_TOP_MINERS) -> dict:
        return build_overview(await self.get_miners(), top_n=top_n)

    # -------------------------------------------------------------------
    # Config overrides
    # -------------------------------------------------------------------

    async def set_config_override(self, miner_key: str, override: dict):
        async with self._write():
            await self.overrides.put(miner_key, override, self._clock())

    async def get_config_override(self, miner_key: str) -> Optional[dict]:
        """Pending override document, or None when absent or already applied."""
        async with self._lock.read():
            return await self.overrides.get_pending(miner_key)

    async def get_last_override(self, miner_key: str) -> Optional[dict]:
        async with self._lock.read():
            row = await self.overrides.get(miner_key)
        return row["override"] if row else None

    async def mark_config_applied(self, miner_key: str):
        async with self._write():
            await self.overrides.mark_applied(miner_key, self._clock())

    async def delete_config_override(self, miner_key: str):
        async with self._write():
            await self.overrides.delete(miner_key)

    # -------------------------------------------------------------------
    # Hashrate history
    # -------------------------------------------------------------------

    async def get_hashrate_history(
        self, miner_key: Optional[str] = None, since: float = 0.0
    ) -> List[dict]:
        async with self._lock.read():
            return await self.history.query(miner_key or None, since)

    async def prune_history(self, retention_sec: float) -> int:
        async with self._write():
            cutoff = self._clock() - retention_sec
            deleted = await self.history.delete_older_than(cutoff)
        if deleted:
            logger.info("Pruned %d hashrate samples older than %.0fs", deleted, retention_sec)
        return deleted
