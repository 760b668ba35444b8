"""
Mining Fleet Agent

Runs beside the mining process on each host: reports liveness and
hashrate to the coordinator and applies operator config overrides
through the mining process's local HTTP API.
"""

__version__ = "0.1.0"

__all__ = [
    "agent",
    "cli",
    "config",
    "coordinator_client",
    "host",
    "miner_api",
    "report",
]
