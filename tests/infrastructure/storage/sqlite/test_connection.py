"""Unit tests for SQLite connection pool."""

from pathlib import Path

import aiosqlite
import pytest

from stockledger.core.exceptions import DatabaseError
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_defaults(self, db_path: Path):
        pool = ConnectionPool(db_path)
        assert pool.db_path == db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool.lock_retry_attempts == 3
        assert pool._initialized is False

    def test_retry_attempts_at_least_one(self, db_path: Path):
        pool = ConnectionPool(db_path, lock_retry_attempts=0)
        assert pool.lock_retry_attempts == 1


class TestConnectionPoolLifecycle:
    async def test_initialize_creates_connections(self, db_path: Path):
        pool = ConnectionPool(db_path, pool_size=3)
        await pool.initialize()
        try:
            assert pool._initialized is True
            assert len(pool._connections) == 3
            assert db_path.exists()
        finally:
            await pool.close()

    async def test_initialize_is_idempotent(self, db_path: Path):
        pool = ConnectionPool(db_path, pool_size=2)
        await pool.initialize()
        await pool.initialize()
        try:
            assert len(pool._connections) == 2
        finally:
            await pool.close()

    async def test_acquire_initializes_lazily(self, db_path: Path):
        pool = ConnectionPool(db_path, pool_size=1)
        try:
            async with pool.acquire() as conn:
                cursor = await conn.execute("PRAGMA foreign_keys")
                assert (await cursor.fetchone())[0] == 1
        finally:
            await pool.close()

    async def test_close_resets_state(self, db_path: Path):
        pool = ConnectionPool(db_path, pool_size=2)
        await pool.initialize()
        await pool.close()
        assert pool._initialized is False
        assert pool._connections == []


class TestWriteTransaction:
    async def test_commits_on_success(self, pool: ConnectionPool):
        async with pool.write_transaction() as conn:
            await conn.execute(
                "INSERT INTO actor_capabilities (actor_id, capability) VALUES ('a', 'c')"
            )

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM actor_capabilities")
            assert (await cursor.fetchone())[0] == 1

    async def test_rolls_back_on_error(self, pool: ConnectionPool):
        with pytest.raises(RuntimeError):
            async with pool.write_transaction() as conn:
                await conn.execute(
                    "INSERT INTO actor_capabilities (actor_id, capability) VALUES ('a', 'c')"
                )
                raise RuntimeError("boom")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM actor_capabilities")
            assert (await cursor.fetchone())[0] == 0

    async def test_lock_exhaustion_raises_database_error(self, db_path: Path):
        pool = ConnectionPool(
            db_path, pool_size=1, busy_timeout=0, lock_retry_attempts=2, lock_retry_delay=0.01
        )
        await pool.initialize()

        holder = await aiosqlite.connect(db_path, isolation_level=None)
        await holder.execute("BEGIN IMMEDIATE")
        try:
            with pytest.raises(DatabaseError) as exc_info:
                async with pool.write_transaction():
                    pass
            assert exc_info.value.details["operation"] == "begin_transaction"
        finally:
            await holder.execute("ROLLBACK")
            await holder.close()
            await pool.close()

    async def test_pool_usable_after_lock_failure(self, db_path: Path):
        pool = ConnectionPool(
            db_path, pool_size=1, busy_timeout=0, lock_retry_attempts=1, lock_retry_delay=0.01
        )
        await pool.initialize()

        holder = await aiosqlite.connect(db_path, isolation_level=None)
        await holder.execute("BEGIN IMMEDIATE")
        with pytest.raises(DatabaseError):
            async with pool.write_transaction():
                pass
        await holder.execute("ROLLBACK")
        await holder.close()

        try:
            async with pool.write_transaction() as conn:
                await conn.execute("CREATE TABLE t (x INTEGER)")
        finally:
            await pool.close()
