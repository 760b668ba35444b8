"""
test_monitoring.py - Unit tests for status derivation, fleet overview and
config backfill.

The overview tests go through StorageManager so status comes from the
injected clock the same way the API sees it.
"""

import pytest

from coordinator.monitoring import (
    DEFAULT_TOP_MINERS,
    OFFLINE_THRESHOLD,
    ONLINE_THRESHOLD,
    backfill_cpu_fields,
    build_overview,
    miner_status,
)


# ── Status ────────────────────────────────────────────────────────────────

class TestMinerStatus:

    @pytest.mark.parametrize("elapsed,expected", [
        (0, "online"),
        (ONLINE_THRESHOLD - 0.001, "online"),
        (ONLINE_THRESHOLD, "stale"),
        (OFFLINE_THRESHOLD - 0.001, "stale"),
        (OFFLINE_THRESHOLD, "offline"),
        (86400, "offline"),
    ])
    def test_thresholds(self, elapsed, expected):
        assert miner_status(1000.0, 1000.0 + elapsed) == expected


# ── Overview ──────────────────────────────────────────────────────────────

class TestFleetOverview:

    def test_empty_fleet(self):
        result = build_overview([])
        assert result == {
            "total_miners": 0,
            "active_miners": 0,
            "stale_miners": 0,
            "offline_miners": 0,
            "total_hashrate": 0.0,
            "average_hashrate": 0.0,
            "top_miners": [],
        }

    @pytest.mark.asyncio
    async def test_only_online_miners_count(self, storage, clock, make_report):
        await storage.upsert_miner(make_report("gone", current=5000.0, average=4900.0))
        clock.advance(OFFLINE_THRESHOLD + 100)
        await storage.upsert_miner(make_report("quiet", current=800.0, average=790.0))
        clock.advance(ONLINE_THRESHOLD + 10)
        await storage.upsert_miner(make_report("a", current=1000.0, average=950.0))
        await storage.upsert_miner(make_report("b", current=2000.0, average=1900.0))

        overview = await storage.get_overview()
        assert overview["total_miners"] == 4
        assert overview["active_miners"] == 2
        assert overview["stale_miners"] == 1
        assert overview["offline_miners"] == 1
        assert overview["total_hashrate"] == 3000.0
        # sum of online miners' averages, not a mean
        assert overview["average_hashrate"] == 2850.0

    @pytest.mark.asyncio
    async def test_top_miners_by_current_hashrate(self, storage, make_report):
        for i in range(DEFAULT_TOP_MINERS + 3):
            await storage.upsert_miner(make_report(f"m{i}", current=100.0 * (i + 1)))
        overview = await storage.get_overview()
        top = overview["top_miners"]
        assert len(top) == DEFAULT_TOP_MINERS
        assert top[0]["id"] == f"m{DEFAULT_TOP_MINERS + 2}"
        currents = [m["hashrate"]["current"] for m in top]
        assert currents == sorted(currents, reverse=True)

    @pytest.mark.asyncio
    async def test_top_n_override(self, storage, make_report):
        for i in range(3):
            await storage.upsert_miner(make_report(f"m{i}"))
        assert len((await storage.get_overview(top_n=1))["top_miners"]) == 1
        assert (await storage.get_overview(top_n=0))["top_miners"] == []


# ── Backfill ──────────────────────────────────────────────────────────────

class TestBackfillCpuFields:

    def test_copies_dropped_field(self):
        live = {"cpu": {"enabled": True}}
        override = {"cpu": {"max-threads-hint": 50, "priority": 4}}
        merged = backfill_cpu_fields(live, override)
        assert merged == {"cpu": {"enabled": True, "max-threads-hint": 50}}
        # input untouched
        assert live == {"cpu": {"enabled": True}}

    def test_live_value_wins(self):
        live = {"cpu": {"max-threads-hint": 75}}
        merged = backfill_cpu_fields(live, {"cpu": {"max-threads-hint": 50}})
        assert merged["cpu"]["max-threads-hint"] == 75

    def test_only_known_fields(self):
        live = {"cpu": {}}
        merged = backfill_cpu_fields(live, {"cpu": {"priority": 5}, "pools": [{"url": "x"}]})
        assert merged == {"cpu": {}}

    @pytest.mark.parametrize("live,override", [
        (None, {"cpu": {"max-threads-hint": 50}}),
        ({"cpu": {}}, None),
        ({"pools": []}, {"cpu": {"max-threads-hint": 50}}),
        ({"cpu": {}}, {"cpu": "not-a-section"}),
    ])
    def test_nothing_to_merge(self, live, override):
        assert backfill_cpu_fields(live, override) is live
