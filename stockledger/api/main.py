"""
FastAPI application for the stock ledger.

Startup applies pending schema scripts and opens the connection pool before
the first request is accepted; a failed migration aborts startup.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockledger import __version__
from stockledger.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from stockledger.api.middleware.error_handler import setup_exception_handlers
from stockledger.api.routes import health_router, inventory_router, transactions_router
from stockledger.config import configure_logging, get_logger, get_settings
from stockledger.core.exceptions import DatabaseError

logger = get_logger(__name__)


async def _prepare_database() -> None:
    from stockledger.infrastructure.storage.sqlite import get_pool
    from stockledger.infrastructure.storage.sqlite.migrations import run_migrations

    results = await run_migrations()
    failed = next((r for r in results if not r.success), None)
    if failed is not None:
        raise DatabaseError("migrate", f"v{failed.version}: {failed.error}")
    logger.info("database_initialized", applied=[r.version for r in results])

    pool = await get_pool()
    logger.info("connection_pool_ready", pool_size=pool.pool_size)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        db_path=str(settings.storage.db_path),
    )

    try:
        await _prepare_database()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    yield

    from stockledger.infrastructure.storage.sqlite import close_pool

    try:
        await close_pool()
    except Exception as e:
        logger.warning("connection_pool_close_failed", error=str(e))
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Build the app with logging, error rendering and the ledger routers."""
    settings = get_settings()
    configure_logging(settings)

    docs = settings.api.debug
    app = FastAPI(
        title="Stock Ledger API",
        description="Inventory transaction ledger with approval and delivery tracking",
        version=__version__,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        lifespan=lifespan,
    )

    # The last middleware added is outermost: logging wraps error rendering
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    setup_exception_handlers(app)

    for router in (health_router, transactions_router, inventory_router):
        app.include_router(router)

    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Container liveness check."""
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "stockledger.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
