"""Liveness and database readiness endpoints."""

import time

from fastapi import APIRouter

from stockledger import __version__
from stockledger.application.dto.responses import HealthResponse, ProviderHealthResponse

router = APIRouter(prefix="/api/health", tags=["health"])

_started_at = time.monotonic()


def _uptime() -> float:
    return time.monotonic() - _started_at


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """The process is up; says nothing about the database."""
    return HealthResponse(status="healthy", version=__version__, uptime_seconds=_uptime())


async def _database_status() -> ProviderHealthResponse:
    from stockledger.infrastructure.storage.sqlite import get_pool
    from stockledger.infrastructure.storage.sqlite.migrations import get_migration_status

    pool = await get_pool()
    started = time.perf_counter()
    async with pool.acquire() as conn:
        await conn.execute("SELECT COUNT(*) FROM inventory_items")
    latency_ms = (time.perf_counter() - started) * 1000

    schema = await get_migration_status(pool.db_path)
    pending = schema["pending_migrations"]
    return ProviderHealthResponse(
        name=f"sqlite (schema v{schema['current_version']})",
        available=not pending,
        latency_ms=latency_ms,
        error=f"pending migrations: {pending}" if pending else None,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database readiness.

    Unhealthy when the ledger tables cannot be read or a schema script has
    not been applied yet.
    """
    try:
        database = await _database_status()
    except Exception as e:
        database = ProviderHealthResponse(name="sqlite", available=False, error=str(e))

    return HealthResponse(
        status="healthy" if database.available else "unhealthy",
        version=__version__,
        uptime_seconds=_uptime(),
        database=database,
    )
