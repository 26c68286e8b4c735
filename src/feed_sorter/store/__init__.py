"""Store contracts."""

from .base import ItemStore, RunLedger, SessionStore
from .memory import MemoryStore, RunRecord
from .sqlite import (
    DEFAULT_MIGRATIONS,
    Migration,
    RunSummary,
    SQLiteMigrationRunner,
    SQLiteStore,
)

__all__ = [
    "DEFAULT_MIGRATIONS",
    "ItemStore",
    "MemoryStore",
    "Migration",
    "RunLedger",
    "RunRecord",
    "RunSummary",
    "SQLiteMigrationRunner",
    "SQLiteStore",
    "SessionStore",
]
