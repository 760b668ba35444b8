#!/usr/bin/env python3
"""
mock_fleet.py - Standalone mock miner fleet simulator.

Spawns N simulated hosts that report to the coordinator over HTTP the same
way the agent does, pick up pending config overrides, "apply" them and ack,
and periodically go quiet so the dashboard shows stale/offline miners.

Usage:
    python scripts/mock_fleet.py --miners 5 --server-url http://localhost:8080 [--agent-key SECRET]
"""

import argparse
import asyncio
import logging
import random
import signal
from dataclasses import dataclass, field
from typing import List, Optional

from agent.coordinator_client import CoordinatorClient, extract_override

logger = logging.getLogger("fleet")

CPU_PROFILES = [
    {"model": "AMD Ryzen 9 7950X 16-Core Processor", "family": "amd_ryzen", "cores": 32,
     "arch": "amd64", "os": "linux", "hashrate_range": (18000, 22000)},
    {"model": "AMD EPYC 7763 64-Core Processor", "family": "amd_epyc", "cores": 128,
     "arch": "amd64", "os": "linux", "hashrate_range": (40000, 48000)},
    {"model": "Intel(R) Core(TM) i9-13900K", "family": "intel", "cores": 32,
     "arch": "amd64", "os": "linux", "hashrate_range": (12000, 15000)},
    {"model": "Apple M2 Pro", "family": "apple_m2_pro", "cores": 12,
     "arch": "arm64", "os": "darwin", "hashrate_range": (3000, 3800)},
]

SIM_VERSION = "sim-0.1.0"


@dataclass
class SimMiner:
    index: int
    profile: dict
    online: bool = True
    uptime: int = 0
    current_hashrate: float = 0.0
    samples: List[float] = field(default_factory=list)
    config: dict = field(default_factory=dict)

    def __post_init__(self):
        lo, hi = self.profile["hashrate_range"]
        self.current_hashrate = random.uniform(lo, hi)
        self.config = {
            "api": {"id": self.miner_id, "worker-id": self.worker_id},
            "cpu": {"enabled": True, "max-threads-hint": 100},
        }

    @property
    def miner_id(self) -> str:
        return f"sim-miner-{self.index:03d}"

    @property
    def worker_id(self) -> str:
        return f"10-0-0-{self.index + 10}"

    def drift(self):
        lo, hi = self.profile["hashrate_range"]
        self.current_hashrate += random.uniform(-0.02, 0.02) * hi
        self.current_hashrate = max(lo * 0.9, min(hi * 1.1, self.current_hashrate))
        self.samples = (self.samples + [self.current_hashrate])[-60:]


def build_sim_report(miner: SimMiner) -> dict:
    """Report body for a simulated miner, shaped like the agent's."""
    report = {
        "miner_id": miner.miner_id,
        "worker_id": miner.worker_id,
        "hostname": f"sim-host-{miner.index:03d}",
        "ip": miner.worker_id.replace("-", "."),
        "cpu_model": miner.profile["model"],
        "cpu_family": miner.profile["family"],
        "cores": miner.profile["cores"],
        "os": miner.profile["os"],
        "arch": miner.profile["arch"],
        "xmrig_version": "6.21.0",
        "agent_version": SIM_VERSION,
        "uptime_seconds": miner.uptime,
        "config": miner.config,
    }
    if miner.samples:
        report["hashrate"] = {
            "current": round(miner.current_hashrate, 2),
            "average": round(sum(miner.samples) / len(miner.samples), 2),
            "max": round(max(miner.samples), 2),
        }
    return report


class FleetSimulator:
    def __init__(self, n_miners: int, client: CoordinatorClient,
                 report_interval: float = 30.0, poll_interval: float = 3.0):
        self.client = client
        self.report_interval = report_interval
        self.poll_interval = poll_interval
        self.miners = [SimMiner(index=i, profile=random.choice(CPU_PROFILES)) for i in range(n_miners)]
        self._stop = asyncio.Event()

    async def _apply(self, miner: SimMiner, override: Optional[dict]):
        if override is None:
            return
        miner.config = override
        logger.info("%s applied config override", miner.miner_id)
        await self.client.ack(miner.miner_id)

    async def _report(self, miner: SimMiner):
        if not miner.online:
            return
        miner.drift()
        body = await self.client.send_report(build_sim_report(miner))
        if body is not None:
            await self._apply(miner, extract_override(body))

    def _print_status(self):
        online = [m for m in self.miners if m.online]
        logger.info(
            "Fleet: %d/%d online | %.1f H/s total",
            len(online), len(self.miners), sum(m.current_hashrate for m in online),
        )

    def _toggle_offline(self):
        loop = asyncio.get_running_loop()
        for m in self.miners:
            if m.online and random.random() < 0.1:
                m.online = False
                offline_dur = random.randint(120, 420)
                logger.info("%s going quiet for %ds", m.miner_id, offline_dur)
                loop.call_later(offline_dur, self._bring_online, m)

    def _bring_online(self, miner: SimMiner):
        miner.online = True
        miner.uptime = 0
        logger.info("%s back online", miner.miner_id)

    async def run(self):
        tick = 0.0
        next_report = 0.0
        next_toggle = 300.0
        while not self._stop.is_set():
            if tick >= next_report:
                await asyncio.gather(*(self._report(m) for m in self.miners))
                self._print_status()
                next_report += self.report_interval
            else:
                for m in self.miners:
                    if m.online:
                        await self._apply(m, await self.client.get_pending(m.miner_id))
            if tick >= next_toggle:
                self._toggle_offline()
                next_toggle += 300.0

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
            tick += self.poll_interval
            for m in self.miners:
                if m.online:
                    m.uptime += int(self.poll_interval)

    def stop(self):
        self._stop.set()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = argparse.ArgumentParser(description="Mock miner fleet simulator")
    parser.add_argument("--miners", type=int, default=5, help="Number of simulated miners")
    parser.add_argument("--server-url", default="http://localhost:8080", help="Coordinator base URL")
    parser.add_argument("--agent-key", default="", help="Coordinator agent key")
    parser.add_argument("--report-interval", type=float, default=30.0, help="Seconds between reports")
    args = parser.parse_args()

    fleet = FleetSimulator(args.miners, CoordinatorClient(args.server_url, args.agent_key),
                           report_interval=args.report_interval)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _signal_handler():
        logger.info("Shutting down fleet...")
        fleet.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    logger.info("Starting fleet: %d miners -> %s", args.miners, args.server_url)
    try:
        loop.run_until_complete(fleet.run())
    finally:
        loop.close()


if __name__ == "__main__":
    main()
