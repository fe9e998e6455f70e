"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteActorDirectory,
    SQLiteAuditSink,
    SQLiteLedgerStore,
    SQLiteProcurementLookup,
    close_pool,
    get_pool,
)

__all__ = [
    # SQLite stores
    "SQLiteLedgerStore",
    "SQLiteProcurementLookup",
    "SQLiteActorDirectory",
    "SQLiteAuditSink",
    # Connection pool
    "get_pool",
    "close_pool",
]
