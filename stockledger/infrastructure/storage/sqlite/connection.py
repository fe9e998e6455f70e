"""
Connection pool for the ledger database.

A fixed number of aiosqlite connections is opened up front in autocommit
mode. Reads borrow one with ``acquire()``. Every ledger write borrows one
with ``write_transaction()``, which issues BEGIN IMMEDIATE before handing it
out: the database write lock is held from the first read of a unit of work
to its COMMIT, so balance checks and the updates they guard never interleave
with another writer.
"""

import asyncio
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import DatabaseError

logger = get_logger(__name__)

# Applied to every pooled connection. WAL keeps balance reads going while a
# unit of work holds the write lock; foreign keys tie items to their entries.
_CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


def _write_lock_busy(error: BaseException) -> bool:
    if not isinstance(error, sqlite3.OperationalError):
        return False
    text = str(error)
    return "locked" in text or "busy" in text


def _warn_lock_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "write_lock_retry",
        attempt=retry_state.attempt_number,
        error=str(outcome.exception()) if outcome else None,
    )


class ConnectionPool:
    """Bounded set of ledger connections shared by the SQLite stores."""

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
        lock_retry_attempts: int = 3,
        lock_retry_delay: float = 0.05,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self.lock_retry_attempts = max(1, lock_retry_attempts)
        self.lock_retry_delay = lock_retry_delay

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._setup_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open every connection. Later calls do nothing."""
        async with self._setup_lock:
            if self._initialized:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            while len(self._connections) < self.pool_size:
                conn = await self._open()
                self._connections.append(conn)
                self._idle.put_nowait(conn)
            self._initialized = True

        logger.info(
            "connection_pool_initialized",
            db_path=str(self.db_path),
            pool_size=self.pool_size,
        )

    async def _open(self) -> aiosqlite.Connection:
        # isolation_level=None: the stores issue BEGIN/COMMIT themselves
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        for pragma in _CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection for reads; it goes back to the pool on exit."""
        if not self._initialized:
            await self.initialize()

        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def write_transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection that already holds the write lock.

        The body commits when it exits normally and rolls back on any
        exception, which is re-raised.

        Raises:
            DatabaseError: The lock was still taken after the configured
                number of attempts.
        """
        async with self.acquire() as conn:
            await self._take_write_lock(conn)
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    async def _take_write_lock(self, conn: aiosqlite.Connection) -> None:
        attempts = AsyncRetrying(
            stop=stop_after_attempt(self.lock_retry_attempts),
            wait=wait_exponential(multiplier=self.lock_retry_delay, min=self.lock_retry_delay),
            retry=retry_if_exception(_write_lock_busy),
            before_sleep=_warn_lock_retry,
        )
        try:
            await attempts(conn.execute, "BEGIN IMMEDIATE")
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error("write_lock_exhausted", attempts=self.lock_retry_attempts)
            raise DatabaseError("begin_transaction", str(cause)) from cause

    async def close(self) -> None:
        """Close every connection; the pool can be initialized again afterwards."""
        async with self._setup_lock:
            while self._connections:
                await self._connections.pop().close()
            self._idle = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
        logger.info("connection_pool_closed", db_path=str(self.db_path))


_shared_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from storage and ledger settings."""
    global _shared_pool
    if _shared_pool is None:
        settings = get_settings()
        _shared_pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
            lock_retry_attempts=settings.ledger.lock_retry_attempts,
            lock_retry_delay=settings.ledger.lock_retry_delay,
        )
        await _shared_pool.initialize()
    return _shared_pool


async def close_pool() -> None:
    """Close the process-wide pool if one was opened."""
    global _shared_pool
    if _shared_pool is not None:
        await _shared_pool.close()
        _shared_pool = None
