"""SQLite implementation of the audit sink."""

import json
from datetime import datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.audit import AuditEvent
from stockledger.core.interfaces.collaborators import IAuditSink
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)


class SQLiteAuditSink(IAuditSink):
    """Append-only audit_log table."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        return self._pool or await get_pool()

    async def record(self, event: AuditEvent) -> None:
        pool = await self._get_pool()
        async with pool.write_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO audit_log (action, entity_type, entity_id, actor_id, details, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    event.action,
                    event.entity_type,
                    event.entity_id,
                    event.actor_id,
                    json.dumps(event.details, default=str),
                    event.created_at.isoformat(),
                ),
            )
        logger.debug("audit_recorded", action=event.action, entity_id=event.entity_id)

    async def list_for_entity(
        self,
        entity_id: str,
        entity_type: str = "inventory_transaction",
    ) -> list[AuditEvent]:
        """Audit events for one entity, oldest first."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM audit_log
                WHERE entity_type = ? AND entity_id = ?
                ORDER BY id
                """,
                (entity_type, entity_id),
            )
            rows = await cursor.fetchall()
            return [self._row_to_event(row) for row in rows]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> AuditEvent:
        return AuditEvent(
            id=row["id"],
            action=row["action"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            actor_id=row["actor_id"],
            details=json.loads(row["details"]) if row["details"] else {},
            created_at=datetime.fromisoformat(row["created_at"]),
        )
