"""
Schema migrations for the ledger database.

Migrations are ``vNNN_name.sql`` scripts kept beside this module and applied
in version order. Every applied script is recorded in ``schema_migrations``
with a checksum of its text. If a recorded script has since changed on disk,
the run stops before touching anything: the append-only triggers and CHECK
constraints the ledger relies on live in those scripts.

Before pending scripts run against an existing database, it is copied with
SQLite's online backup API (the WAL is included). A failed script restores
that copy, so a half-applied schema never reaches the connection pool.
"""

import hashlib
import re
import sqlite3
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import DatabaseError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_SCRIPT_NAME = re.compile(r"^v(?P<version>\d{3})_(?P<name>\w+)\.sql$")

LEDGER_TABLES = (
    "schema_migrations",
    "inventory_transactions",
    "inventory_items",
    "purchase_order_lines",
    "actor_capabilities",
    "audit_log",
)

# Guards that keep the ledger append-only and its terminal states terminal.
LEDGER_TRIGGERS = (
    "trg_inv_tx_no_delete",
    "trg_inv_tx_immutable",
    "trg_inv_tx_approval_terminal",
    "trg_inv_tx_delivery_terminal",
    "trg_inv_items_no_delete",
)


@dataclass(frozen=True)
class Migration:
    """One versioned schema script."""

    version: str
    name: str
    path: Path

    @property
    def sql(self) -> str:
        return self.path.read_text(encoding="utf-8")

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode()).hexdigest()[:16]


@dataclass
class MigrationResult:
    """Outcome of applying one script."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Schema scripts in `directory`, oldest version first."""
    found = []
    for path in sorted(directory.glob("v*.sql")):
        match = _SCRIPT_NAME.match(path.name)
        if match is None:
            logger.warning("migration_file_ignored", file=path.name)
            continue
        found.append(Migration(match["version"], match["name"], path))
    return found


async def _applied_checksums(conn: aiosqlite.Connection) -> dict[str, str]:
    cursor = await conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_migrations'"
    )
    if await cursor.fetchone() is None:
        return {}
    cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    return {version: checksum for version, checksum in await cursor.fetchall()}


def _pending(migrations: list[Migration], applied: dict[str, str]) -> list[Migration]:
    changed = [
        m.version for m in migrations if m.version in applied and applied[m.version] != m.checksum
    ]
    if changed:
        raise DatabaseError(
            "migrate", f"applied migrations changed on disk: {', '.join(changed)}"
        )
    return [m for m in migrations if m.version not in applied]


async def _apply(conn: aiosqlite.Connection, migration: Migration) -> MigrationResult:
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        await conn.executescript(migration.sql)
        await conn.execute(
            """
            INSERT INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except sqlite3.Error as e:
        await conn.rollback()
        logger.error(
            "migration_failed", version=migration.version, name=migration.name, error=str(e)
        )
        return MigrationResult(migration.version, migration.name, False, elapsed_ms(), str(e))

    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed_ms(),
    )
    return MigrationResult(migration.version, migration.name, True, elapsed_ms())


async def create_backup(db_path: Path) -> Path:
    """Copy the live database (WAL included) next to it."""
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{stamp}{db_path.suffix}")
    async with aiosqlite.connect(db_path) as source, aiosqlite.connect(backup_path) as target:
        await source.backup(target)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Overwrite the database with a backup taken by create_backup."""
    async with aiosqlite.connect(backup_path) as source, aiosqlite.connect(db_path) as target:
        await source.backup(target)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def run_migrations(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Apply pending schema scripts.

    Stops at the first failing script and restores the pre-run backup if
    one was taken. Results cover only the scripts that were attempted; an
    up-to-date database returns an empty list.

    Raises:
        DatabaseError: An already applied script no longer matches its checksum.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    existed = db_path.exists()

    async with aiosqlite.connect(db_path) as conn:
        pending = _pending(discover_migrations(migrations_dir), await _applied_checksums(conn))
    if not pending:
        logger.debug("schema_up_to_date", db_path=str(db_path))
        return []

    logger.info(
        "migrating_database", db_path=str(db_path), pending=[m.version for m in pending]
    )
    backup_path = await create_backup(db_path) if create_backup_before and existed else None

    results: list[MigrationResult] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        for migration in pending:
            result = await _apply(conn, migration)
            results.append(result)
            if not result.success:
                break

    if not results[-1].success:
        if backup_path is not None:
            await restore_backup(db_path, backup_path)
        return results

    if backup_path is not None:
        backup_path.unlink()
    return results


async def get_migration_status(
    db_path: Path | None = None,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> dict:
    """Applied and pending versions for a database file."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations(migrations_dir)

    applied: dict[str, str] = {}
    if db_path.exists():
        async with aiosqlite.connect(db_path) as conn:
            applied = await _applied_checksums(conn)

    return {
        "exists": db_path.exists(),
        "current_version": max(applied) if applied else None,
        "applied_migrations": sorted(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """SQLite integrity check plus presence of the ledger tables and guard triggers."""
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = (await cursor.fetchone())[0]
        cursor = await conn.execute("SELECT type, name FROM sqlite_master")
        objects = {(kind, name) for kind, name in await cursor.fetchall()}

    missing_tables = [t for t in LEDGER_TABLES if ("table", t) not in objects]
    missing_triggers = [t for t in LEDGER_TRIGGERS if ("trigger", t) not in objects]
    return [
        {
            "check": "integrity",
            "status": "PASS" if integrity == "ok" else "FAIL",
            "result": integrity,
        },
        {
            "check": "ledger_tables",
            "status": "FAIL" if missing_tables else "PASS",
            "missing": missing_tables,
        },
        {
            "check": "ledger_triggers",
            "status": "FAIL" if missing_triggers else "PASS",
            "missing": missing_triggers,
        },
    ]
