"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.application.services import reset_services
from stockledger.config import reset_settings
from stockledger.core.entities import TransactionRequest, TransactionType
from stockledger.core.services import (
    ApprovalStateMachine,
    BalanceProjector,
    BatchProjector,
    TransactionEngine,
)
from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteActorDirectory,
    SQLiteAuditSink,
    SQLiteLedgerStore,
    SQLiteProcurementLookup,
    reset_stores,
)
from stockledger.infrastructure.storage.sqlite.migrations import run_migrations


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point settings at a throwaway data dir and drop cached singletons."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_stores()
    reset_services()
    yield
    reset_settings()
    reset_stores()
    reset_services()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "ledger.db"


@pytest.fixture
async def pool(db_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Migrated database behind a small connection pool."""
    results = await run_migrations(db_path, create_backup_before=False)
    assert results and all(r.success for r in results)

    pool = ConnectionPool(db_path, pool_size=5, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def ledger_store(pool: ConnectionPool) -> SQLiteLedgerStore:
    return SQLiteLedgerStore(pool)


@pytest.fixture
def procurement(pool: ConnectionPool) -> SQLiteProcurementLookup:
    return SQLiteProcurementLookup(pool)


@pytest.fixture
def actors(pool: ConnectionPool) -> SQLiteActorDirectory:
    return SQLiteActorDirectory(pool)


@pytest.fixture
def audit_sink(pool: ConnectionPool) -> SQLiteAuditSink:
    return SQLiteAuditSink(pool)


@pytest.fixture
def balance_projector(ledger_store: SQLiteLedgerStore) -> BalanceProjector:
    return BalanceProjector(ledger_store, cas_max_retries=5)


@pytest.fixture
def batch_projector(ledger_store: SQLiteLedgerStore) -> BatchProjector:
    return BatchProjector(ledger_store)


@pytest.fixture
def state_machine(
    ledger_store: SQLiteLedgerStore,
    balance_projector: BalanceProjector,
    audit_sink: SQLiteAuditSink,
) -> ApprovalStateMachine:
    return ApprovalStateMachine(ledger_store, balance_projector, audit_sink)


@pytest.fixture
def engine(
    ledger_store: SQLiteLedgerStore,
    balance_projector: BalanceProjector,
    state_machine: ApprovalStateMachine,
    procurement: SQLiteProcurementLookup,
    actors: SQLiteActorDirectory,
    audit_sink: SQLiteAuditSink,
) -> TransactionEngine:
    """Transaction engine wired to the temporary database."""
    return TransactionEngine(
        store=ledger_store,
        projector=balance_projector,
        state_machine=state_machine,
        procurement=procurement,
        actors=actors,
        audit_sink=audit_sink,
    )


@pytest.fixture
def make_request() -> Callable[..., TransactionRequest]:
    """
    Build a TransactionRequest with audit fields filled in.

    Movements without a PO line or linked request need a reason code and
    explanation; tests that exercise that rule override them.
    """

    def _make(type: str, product_id: str = "P1", quantity: int = 1, **kwargs: Any):
        kwargs.setdefault("reason_code", "stock_count")
        kwargs.setdefault("explanation", "Opening stock count")
        return TransactionRequest(
            type=TransactionType(type),
            product_id=product_id,
            quantity=quantity,
            **kwargs,
        )

    return _make


@pytest.fixture
async def api_client() -> AsyncGenerator[tuple[Any, AsyncClient], None]:
    """Fresh app plus an async client; tests override use-case providers."""
    from stockledger.api.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield app, ac
    app.dependency_overrides.clear()
