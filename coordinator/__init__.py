"""
Mining Fleet Coordinator - Server Package

Central service for the mining fleet: ingests agent reports, derives
miner liveness, stores operator config overrides and serves them back
to agents for reconciliation.
"""

__version__ = "0.1.0"

__all__ = [
    "auth",
    "monitoring",
    "proxy",
    "rwlock",
    "server",
    "storage",
]
