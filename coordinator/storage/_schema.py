SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied_at REAL NOT NULL
);

-- Miners: one row per mining identity (miner_id, else worker_id)
CREATE TABLE IF NOT EXISTS miners (
    id               TEXT PRIMARY KEY,
    miner_id         TEXT NOT NULL DEFAULT '',
    worker_id        TEXT NOT NULL DEFAULT '',
    hostname         TEXT NOT NULL DEFAULT '',
    ip               TEXT NOT NULL DEFAULT '',
    cpu_model        TEXT NOT NULL DEFAULT '',
    cpu_family       TEXT NOT NULL DEFAULT '',
    cores            INTEGER NOT NULL DEFAULT 0,
    os               TEXT NOT NULL DEFAULT '',
    arch             TEXT NOT NULL DEFAULT '',
    xmrig_version    TEXT NOT NULL DEFAULT '',
    agent_version    TEXT NOT NULL DEFAULT '',
    uptime_seconds   INTEGER NOT NULL DEFAULT 0,
    hashrate_current REAL NOT NULL DEFAULT 0.0,
    hashrate_average REAL NOT NULL DEFAULT 0.0,
    hashrate_max     REAL NOT NULL DEFAULT 0.0,
    config_json      TEXT NOT NULL DEFAULT '{}',
    last_seen        REAL NOT NULL
);

-- Config overrides: at most one per miner, pending while applied_at IS NULL
CREATE TABLE IF NOT EXISTS config_overrides (
    miner_id      TEXT PRIMARY KEY,
    override_json TEXT NOT NULL,
    created_at    REAL NOT NULL,
    applied_at    REAL
);

-- Hashrate history: append-only, one row per report carrying hashrate
CREATE TABLE IF NOT EXISTS hashrate_history (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    miner_id  TEXT NOT NULL,
    timestamp REAL NOT NULL,
    current   REAL NOT NULL DEFAULT 0.0,
    average   REAL NOT NULL DEFAULT 0.0,
    max       REAL NOT NULL DEFAULT 0.0
);

CREATE INDEX IF NOT EXISTS idx_history_miner_ts ON hashrate_history(miner_id, timestamp);
CREATE INDEX IF NOT EXISTS idx_history_ts ON hashrate_history(timestamp);
CREATE INDEX IF NOT EXISTS idx_miners_hashrate ON miners(hashrate_current);
"""
