"""
test_mock_fleet.py - Simulator report builder and agent CLI wiring.
"""

import json

import pytest

from agent.cli import build_parser, config_from_args
from coordinator.models import AgentReport
from scripts.mock_fleet import CPU_PROFILES, SimMiner, build_sim_report


class TestSimReport:

    def test_first_report_has_no_hashrate(self):
        miner = SimMiner(index=3, profile=CPU_PROFILES[0])
        report = build_sim_report(miner)
        assert report["miner_id"] == "sim-miner-003"
        assert report["ip"] == "10.0.0.13"
        assert "hashrate" not in report
        assert report["config"]["api"]["id"] == "sim-miner-003"

    def test_hashrate_after_drift(self):
        miner = SimMiner(index=0, profile=CPU_PROFILES[1])
        for _ in range(5):
            miner.drift()
        hashrate = build_sim_report(miner)["hashrate"]
        lo, hi = CPU_PROFILES[1]["hashrate_range"]
        assert lo * 0.9 <= hashrate["current"] <= hi * 1.1
        assert hashrate["max"] >= hashrate["average"]

    def test_report_validates_against_api_model(self):
        miner = SimMiner(index=1, profile=CPU_PROFILES[3])
        miner.drift()
        report = AgentReport.model_validate(json.loads(json.dumps(build_sim_report(miner))))
        assert report.cpu_family == "apple_m2_pro"


class TestAgentCli:

    def test_runtime_config_supplies_port_and_token(self, tmp_path, sample_config, monkeypatch):
        for name in ("MINER_API_PORT", "MINER_API_TOKEN", "SERVER_URL"):
            monkeypatch.delenv("MINERFLEET_" + name, raising=False)
        sample_config["http"]["port"] = 18181
        path = tmp_path / "config.json"
        path.write_text(json.dumps(sample_config))
        args = build_parser().parse_args(
            ["--server-url", "http://coord:8080/", "--miner-runtime-config", str(path)]
        )
        config = config_from_args(args)
        assert config.server_url == "http://coord:8080"
        assert config.miner_api_port == 18181
        assert config.miner_api_token == "local-secret"
        assert config.runtime_config_path == str(path)

    def test_flags_win_over_runtime_config(self, tmp_path, sample_config, monkeypatch):
        monkeypatch.delenv("MINERFLEET_MINER_API_PORT", raising=False)
        path = tmp_path / "config.json"
        path.write_text(json.dumps(sample_config))
        args = build_parser().parse_args([
            "--server-url", "http://coord:8080", "--miner-runtime-config", str(path),
            "--miner-api-port", "9000", "--miner-api-token", "override",
        ])
        config = config_from_args(args)
        assert config.miner_api_port == 9000
        assert config.miner_api_token == "override"

    def test_defaults_without_runtime_config(self, monkeypatch):
        for name in ("MINER_API_PORT", "MINER_API_TOKEN", "MINER_RUNTIME_CONFIG",
                     "HEARTBEAT_INTERVAL", "POLL_INTERVAL", "STARTUP_DELAY"):
            monkeypatch.delenv("MINERFLEET_" + name, raising=False)
        config = config_from_args(build_parser().parse_args(["--server-url", "http://c"]))
        assert config.miner_api_port == 8181
        assert config.miner_api_token == ""
        assert config.heartbeat_interval == 30.0
        assert config.poll_interval == 3.0
        assert config.startup_delay == 5.0

    @pytest.mark.parametrize("env,expected", [("9100", 9100), ("", 8181)])
    def test_env_port(self, monkeypatch, env, expected):
        monkeypatch.setenv("MINERFLEET_MINER_API_PORT", env)
        monkeypatch.delenv("MINERFLEET_MINER_RUNTIME_CONFIG", raising=False)
        config = config_from_args(build_parser().parse_args(["--server-url", "http://c"]))
        assert config.miner_api_port == expected
