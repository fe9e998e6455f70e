"""Database migrations module."""

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    LEDGER_TABLES,
    LEDGER_TRIGGERS,
    Migration,
    MigrationResult,
    discover_migrations,
    get_migration_status,
    run_migrations,
    verify_schema_integrity,
)

__all__ = [
    "LEDGER_TABLES",
    "LEDGER_TRIGGERS",
    "Migration",
    "MigrationResult",
    "discover_migrations",
    "get_migration_status",
    "run_migrations",
    "verify_schema_integrity",
]
