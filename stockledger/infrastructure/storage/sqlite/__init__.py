"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.actor_store import (
    AUTO_APPROVE_CHECKOUT,
    SQLiteActorDirectory,
)
from stockledger.infrastructure.storage.sqlite.audit_store import SQLiteAuditSink
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from stockledger.infrastructure.storage.sqlite.ledger_store import (
    SQLiteLedgerStore,
    SQLiteLedgerUnitOfWork,
)
from stockledger.infrastructure.storage.sqlite.procurement_store import (
    SQLiteProcurementLookup,
)

# Singleton instances
_ledger_store: SQLiteLedgerStore | None = None
_procurement_lookup: SQLiteProcurementLookup | None = None
_actor_directory: SQLiteActorDirectory | None = None
_audit_sink: SQLiteAuditSink | None = None


async def get_ledger_store() -> SQLiteLedgerStore:
    """Get singleton ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLedgerStore()
    return _ledger_store


async def get_procurement_lookup() -> SQLiteProcurementLookup:
    """Get singleton procurement lookup instance."""
    global _procurement_lookup
    if _procurement_lookup is None:
        _procurement_lookup = SQLiteProcurementLookup()
    return _procurement_lookup


async def get_actor_directory() -> SQLiteActorDirectory:
    """Get singleton actor directory instance."""
    global _actor_directory
    if _actor_directory is None:
        _actor_directory = SQLiteActorDirectory()
    return _actor_directory


async def get_audit_sink() -> SQLiteAuditSink:
    """Get singleton audit sink instance."""
    global _audit_sink
    if _audit_sink is None:
        _audit_sink = SQLiteAuditSink()
    return _audit_sink


def reset_stores() -> None:
    """Drop store singletons (for testing)."""
    global _ledger_store, _procurement_lookup, _actor_directory, _audit_sink
    _ledger_store = None
    _procurement_lookup = None
    _actor_directory = None
    _audit_sink = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteLedgerStore",
    "SQLiteLedgerUnitOfWork",
    "SQLiteProcurementLookup",
    "SQLiteActorDirectory",
    "SQLiteAuditSink",
    "AUTO_APPROVE_CHECKOUT",
    # Factory functions
    "get_ledger_store",
    "get_procurement_lookup",
    "get_actor_directory",
    "get_audit_sink",
    "reset_stores",
]
