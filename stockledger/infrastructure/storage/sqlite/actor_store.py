"""SQLite-backed actor capability directory."""

from stockledger.config import get_logger
from stockledger.core.interfaces.collaborators import IActorDirectory
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

AUTO_APPROVE_CHECKOUT = "auto_approve_checkout"


class SQLiteActorDirectory(IActorDirectory):
    """Capabilities granted to actors, one row per (actor, capability)."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        return self._pool or await get_pool()

    async def has_auto_approval_capability(self, actor_id: str) -> bool:
        return await self.has_capability(actor_id, AUTO_APPROVE_CHECKOUT)

    async def has_capability(self, actor_id: str, capability: str) -> bool:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM actor_capabilities WHERE actor_id = ? AND capability = ?",
                (actor_id, capability),
            )
            return await cursor.fetchone() is not None

    async def grant(self, actor_id: str, capability: str = AUTO_APPROVE_CHECKOUT) -> None:
        pool = await self._get_pool()
        async with pool.write_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO actor_capabilities (actor_id, capability) VALUES (?, ?)
                ON CONFLICT(actor_id, capability) DO NOTHING
                """,
                (actor_id, capability),
            )
        logger.info("capability_granted", actor_id=actor_id, capability=capability)

    async def revoke(self, actor_id: str, capability: str = AUTO_APPROVE_CHECKOUT) -> None:
        pool = await self._get_pool()
        async with pool.write_transaction() as conn:
            await conn.execute(
                "DELETE FROM actor_capabilities WHERE actor_id = ? AND capability = ?",
                (actor_id, capability),
            )
        logger.info("capability_revoked", actor_id=actor_id, capability=capability)
