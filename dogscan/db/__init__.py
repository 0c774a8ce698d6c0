"""Content storage, rule storage and scan history."""

from .connection import DatabaseConfig, create_connection_pool, get_connection
from .content import PostgresContentStore
from .init import init_database, validate_connection
from .memory import MemoryContentStore
from .rules import PostgresRuleSource, save_rules_to_db
from .scans import ScanManager
from .store import ContentStore, UpsertResult

__all__ = [
    "ContentStore",
    "DatabaseConfig",
    "MemoryContentStore",
    "PostgresContentStore",
    "PostgresRuleSource",
    "ScanManager",
    "UpsertResult",
    "create_connection_pool",
    "get_connection",
    "init_database",
    "save_rules_to_db",
    "validate_connection",
]
