from ._schema import SCHEMA_VERSION, SCHEMA_SQL
from .miners import MinerRepo, miner_identity
from .overrides import OverrideRepo
from .history import HistoryRepo
from .manager import StorageManager

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "MinerRepo",
    "OverrideRepo",
    "HistoryRepo",
    "StorageManager",
    "miner_identity",
]
