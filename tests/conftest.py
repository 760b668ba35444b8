"""Shared fixtures for the fleet test suite."""

import copy

import pytest
import pytest_asyncio

from coordinator.storage import StorageManager


# ── Helpers ─────────────────────────────────────────────────────────────────

class FakeClock:
    """Manually advanced clock; injected wherever the code reads "now"."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


SAMPLE_CONFIG = {
    "api": {"id": "abc", "worker-id": "10-0-0-5"},
    "http": {"enabled": True, "port": 8181, "access-token": "local-secret"},
    "cpu": {"enabled": True, "priority": 2},
}


def _make_report(miner_id: str = "abc", worker_id: str = "10-0-0-5",
                 current: float = 1000.0, average: float = 950.0, max_: float = 1100.0,
                 with_hashrate: bool = True, config=None, **fields) -> dict:
    """Build a report document as the agent posts it."""
    report = {
        "miner_id": miner_id,
        "worker_id": worker_id,
        "hostname": f"host-{miner_id or worker_id}",
        "ip": "10.0.0.5",
        "cpu_model": "AMD Ryzen 9 7950X 16-Core Processor",
        "cpu_family": "amd_ryzen",
        "cores": 32,
        "os": "linux",
        "arch": "amd64",
        "xmrig_version": "6.21.0",
        "agent_version": "0.1.0",
        "uptime_seconds": 3600,
    }
    if with_hashrate:
        report["hashrate"] = {"current": current, "average": average, "max": max_}
    if config is not None:
        report["config"] = copy.deepcopy(config)
    report.update(fields)
    return report


# ── Fixtures ────────────────────────────────────────────────────────────────

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_report():
    return _make_report


@pytest.fixture
def sample_config():
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest_asyncio.fixture
async def storage(clock):
    sm = StorageManager(":memory:", clock=clock)
    await sm.initialize()
    yield sm
    await sm.close()
