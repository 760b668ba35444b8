"""
agent.py - Per-host reconciliation loops.

Two periodic tasks run side by side once the startup delay has passed:

 - heartbeat: build a report, POST it, apply any override in the response
 - poll:      fetch the pending override directly, apply it if present

Both funnel into apply_and_ack(), which holds a lock so the local mining
API never sees two concurrent config writes. A failed cycle is logged and
retried on the next tick; only the stop event ends the loops.
"""

import asyncio
import enum
import logging
from typing import Optional

from agent import __version__
from agent.config import AgentConfig, identity_from_config, read_runtime_config
from agent.coordinator_client import CoordinatorClient, extract_override
from agent.host import HostInfo
from agent.miner_api import LocalMinerClient
from agent.report import build_report

logger = logging.getLogger("agent")


class AgentState(str, enum.Enum):
    STARTING = "STARTING"
    REPORTING = "REPORTING"
    STOPPED = "STOPPED"


async def wait_or_stop(stop: asyncio.Event, timeout: float) -> bool:
    """Sleep up to ``timeout`` seconds; True if ``stop`` was set meanwhile."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        pass
    return stop.is_set()


class Agent:
    def __init__(
        self,
        config: AgentConfig,
        host: HostInfo,
        coordinator: CoordinatorClient,
        miner: LocalMinerClient,
        version: str = __version__,
    ):
        self.config = config
        self.host = host
        self.version = version
        self._coordinator = coordinator
        self._miner = miner
        self._apply_lock = asyncio.Lock()
        self.state = AgentState.STARTING
        self.miner_id = ""
        self.worker_id = ""
        self.last_report: Optional[dict] = None

    @property
    def identity(self) -> str:
        return self.miner_id or self.worker_id

    # -------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------

    def _learn_identity(self, doc: Optional[dict]) -> bool:
        miner_id, worker_id = identity_from_config(doc)
        if not (miner_id or worker_id):
            return False
        if (miner_id, worker_id) != (self.miner_id, self.worker_id):
            logger.info("Miner identity: id=%s worker-id=%s", miner_id or "-", worker_id or "-")
        self.miner_id, self.worker_id = miner_id, worker_id
        return True

    async def discover_identity(self, live_config: Optional[dict] = None) -> str:
        """Miner identity from the runtime config file, else from the live config."""
        if self._learn_identity(read_runtime_config(self.config.runtime_config_path)):
            return self.identity
        if live_config is None and not self.identity:
            live_config = await self._miner.get_config()
        self._learn_identity(live_config)
        return self.identity

    # -------------------------------------------------------------------
    # Cycles
    # -------------------------------------------------------------------

    async def build_report(self) -> dict:
        live_config = await self._miner.get_config()
        summary = await self._miner.get_summary()
        await self.discover_identity(live_config)
        report = build_report(
            self.host, self.version,
            miner_id=self.miner_id, worker_id=self.worker_id,
            summary=summary, live_config=live_config,
        )
        self.last_report = report
        return report

    async def heartbeat_once(self) -> bool:
        report = await self.build_report()
        miner_key = self.identity
        if not miner_key:
            logger.warning("Cannot determine miner ID yet, skipping report")
            return False

        response = await self._coordinator.send_report(report)
        if response is None:
            return False

        hashrate = report.get("hashrate")
        if hashrate is not None:
            logger.info("Report ok (hashrate: %.1f H/s)", hashrate["current"])
        else:
            logger.info("Report ok (hashrate: unavailable)")

        override = extract_override(response)
        if override is not None:
            await self.apply_and_ack(override, miner_key)
        return True

    async def poll_once(self) -> bool:
        miner_key = self.identity or await self.discover_identity()
        if not miner_key:
            logger.debug("Config poll: miner ID unknown, skipping")
            return False
        override = await self._coordinator.get_pending(miner_key)
        if override is None:
            return False
        return await self.apply_and_ack(override, miner_key)

    async def apply_and_ack(self, override: dict, miner_key: str) -> bool:
        """Write the override to the mining process and ack it on success.

        Returns True when the mining process accepted the document. A failed
        ack leaves the override pending, so it is written again next tick.
        """
        async with self._apply_lock:
            status = await self._miner.put_config(override)
            if status not in (200, 204):
                return False
            logger.info("Applied config override from server")
            await self._coordinator.ack(miner_key)
            return True

    # -------------------------------------------------------------------
    # Loops
    # -------------------------------------------------------------------

    async def _run_cycle(self, name: str, cycle):
        try:
            await cycle()
        except Exception:
            logger.exception("Unexpected error in %s cycle", name)

    async def _heartbeat_loop(self, stop: asyncio.Event):
        while not stop.is_set():
            await self._run_cycle("heartbeat", self.heartbeat_once)
            if await wait_or_stop(stop, self.config.heartbeat_interval):
                break

    async def _poll_loop(self, stop: asyncio.Event):
        while not await wait_or_stop(stop, self.config.poll_interval):
            await self._run_cycle("config-poll", self.poll_once)

    async def run(self, stop: asyncio.Event):
        """Run until ``stop`` is set."""
        logger.info(
            "Agent started, reporting to %s every %.0fs (config poll every %.0fs)",
            self.config.server_url, self.config.heartbeat_interval, self.config.poll_interval,
        )
        # Give the mining process time to bring its HTTP API up.
        if await wait_or_stop(stop, self.config.startup_delay):
            logger.info("Received signal during startup, exiting")
            self.state = AgentState.STOPPED
            return

        self.state = AgentState.REPORTING
        try:
            await asyncio.gather(self._heartbeat_loop(stop), self._poll_loop(stop))
        finally:
            self.state = AgentState.STOPPED
            logger.info("Agent stopped")
