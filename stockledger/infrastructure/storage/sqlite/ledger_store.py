"""SQLite implementation of the inventory ledger and its balance aggregates."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.inventory import InventoryItem
from stockledger.core.entities.transaction import (
    ApprovalStatus,
    DeliveryDetails,
    DeliveryStatus,
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.exceptions import (
    DatabaseError,
    InvalidTransitionError,
    TransactionNotFoundError,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore, ILedgerUnitOfWork
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

_PAIR_FILTER = "product_id = ? AND (source_warehouse_id = ? OR target_warehouse_id = ?)"


def _row_to_transaction(row: aiosqlite.Row) -> InventoryTransaction:
    details = row["delivery_details"]
    return InventoryTransaction(
        id=row["id"],
        type=TransactionType(row["type"]),
        product_id=row["product_id"],
        source_warehouse_id=row["source_warehouse_id"],
        target_warehouse_id=row["target_warehouse_id"],
        quantity=row["quantity"],
        unit_price=row["unit_price"],
        currency=row["currency"],
        reference=row["reference"],
        notes=row["notes"],
        reason_code=row["reason_code"],
        explanation=row["explanation"],
        actor_id=row["actor_id"],
        approval_status=ApprovalStatus(row["approval_status"]),
        approved_by=row["approved_by"],
        approval_notes=row["approval_notes"],
        decided_at=datetime.fromisoformat(row["decided_at"]) if row["decided_at"] else None,
        delivery_status=DeliveryStatus(row["delivery_status"]),
        delivery_details=DeliveryDetails.model_validate_json(details) if details else None,
        linked_request_id=row["linked_request_id"],
        po_line_id=row["po_line_id"],
        idempotency_key=row["idempotency_key"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_item(row: aiosqlite.Row) -> InventoryItem:
    return InventoryItem(
        id=row["id"],
        product_id=row["product_id"],
        warehouse_id=row["warehouse_id"],
        quantity=row["quantity"],
        last_updated=datetime.fromisoformat(row["last_updated"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _details_json(details: DeliveryDetails | None) -> str | None:
    if details is None:
        return None
    return details.model_dump_json(exclude_none=True)


async def _fetch_transaction(
    conn: aiosqlite.Connection, transaction_id: int
) -> InventoryTransaction | None:
    cursor = await conn.execute(
        "SELECT * FROM inventory_transactions WHERE id = ?", (transaction_id,)
    )
    row = await cursor.fetchone()
    return _row_to_transaction(row) if row else None


async def _fetch_by_idempotency_key(
    conn: aiosqlite.Connection, key: str
) -> InventoryTransaction | None:
    cursor = await conn.execute(
        "SELECT * FROM inventory_transactions WHERE idempotency_key = ?", (key,)
    )
    row = await cursor.fetchone()
    return _row_to_transaction(row) if row else None


async def _fetch_pair_history(
    conn: aiosqlite.Connection,
    product_id: str,
    warehouse_id: str,
    approved_only: bool,
) -> list[InventoryTransaction]:
    sql = f"SELECT * FROM inventory_transactions WHERE {_PAIR_FILTER}"
    params: list = [product_id, warehouse_id, warehouse_id]
    if approved_only:
        sql += " AND approval_status = ?"
        params.append(ApprovalStatus.APPROVED.value)
    sql += " ORDER BY id"
    cursor = await conn.execute(sql, params)
    rows = await cursor.fetchall()
    return [_row_to_transaction(row) for row in rows]


async def _fetch_item(
    conn: aiosqlite.Connection, product_id: str, warehouse_id: str
) -> InventoryItem | None:
    cursor = await conn.execute(
        "SELECT * FROM inventory_items WHERE product_id = ? AND warehouse_id = ?",
        (product_id, warehouse_id),
    )
    row = await cursor.fetchone()
    return _row_to_item(row) if row else None


async def sum_received_for_po_line(conn: aiosqlite.Connection, po_line_id: str) -> int:
    cursor = await conn.execute(
        """
        SELECT COALESCE(SUM(quantity), 0) FROM inventory_transactions
        WHERE po_line_id = ? AND type = ? AND approval_status = ?
        """,
        (po_line_id, TransactionType.CHECK_IN.value, ApprovalStatus.APPROVED.value),
    )
    return (await cursor.fetchone())[0]


class SQLiteLedgerUnitOfWork(ILedgerUnitOfWork):
    """Ledger operations bound to one connection inside BEGIN IMMEDIATE."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def append(self, entry: InventoryTransaction) -> InventoryTransaction:
        now = datetime.now(UTC)
        cursor = await self._conn.execute(
            """
            INSERT INTO inventory_transactions (
                type, product_id, source_warehouse_id, target_warehouse_id,
                quantity, unit_price, currency, reference, notes,
                reason_code, explanation, actor_id,
                approval_status, approved_by, approval_notes, decided_at,
                delivery_status, delivery_details,
                linked_request_id, po_line_id, idempotency_key,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.type.value,
                entry.product_id,
                entry.source_warehouse_id,
                entry.target_warehouse_id,
                entry.quantity,
                entry.unit_price,
                entry.currency,
                entry.reference,
                entry.notes,
                entry.reason_code,
                entry.explanation,
                entry.actor_id,
                entry.approval_status.value,
                entry.approved_by,
                entry.approval_notes,
                entry.decided_at.isoformat() if entry.decided_at else None,
                entry.delivery_status.value,
                _details_json(entry.delivery_details),
                entry.linked_request_id,
                entry.po_line_id,
                entry.idempotency_key,
                entry.created_at.isoformat(),
                now.isoformat(),
            ),
        )
        appended = entry.model_copy(update={"id": cursor.lastrowid, "updated_at": now})
        logger.debug(
            "ledger_entry_appended",
            transaction_id=appended.id,
            type=appended.type.value,
            product_id=appended.product_id,
        )
        return appended

    async def get(self, transaction_id: int) -> InventoryTransaction | None:
        return await _fetch_transaction(self._conn, transaction_id)

    async def find_by_idempotency_key(self, key: str) -> InventoryTransaction | None:
        return await _fetch_by_idempotency_key(self._conn, key)

    async def list_by_product_warehouse(
        self,
        product_id: str,
        warehouse_id: str,
        approved_only: bool = False,
    ) -> list[InventoryTransaction]:
        return await _fetch_pair_history(self._conn, product_id, warehouse_id, approved_only)

    async def received_for_po_line(self, po_line_id: str) -> int:
        return await sum_received_for_po_line(self._conn, po_line_id)

    async def set_approval_status(
        self,
        transaction_id: int,
        expected: ApprovalStatus,
        new: ApprovalStatus,
        actor_id: str | None = None,
        notes: str | None = None,
    ) -> InventoryTransaction:
        now = datetime.now(UTC).isoformat()
        cursor = await self._conn.execute(
            """
            UPDATE inventory_transactions SET
                approval_status = ?,
                approved_by = CASE WHEN ? = 'approved' THEN ? ELSE approved_by END,
                approval_notes = COALESCE(?, approval_notes),
                decided_at = ?,
                updated_at = ?
            WHERE id = ? AND approval_status = ?
            """,
            (
                new.value,
                new.value,
                actor_id,
                notes,
                now,
                now,
                transaction_id,
                expected.value,
            ),
        )
        current = await _fetch_transaction(self._conn, transaction_id)
        if current is None:
            raise TransactionNotFoundError(transaction_id)
        if cursor.rowcount != 1:
            raise InvalidTransitionError(
                transaction_id,
                field="approval_status",
                current=current.approval_status.value,
                target=new.value,
            )
        return current

    async def set_delivery_status(
        self,
        transaction_id: int,
        expected: tuple[DeliveryStatus, ...],
        new: DeliveryStatus,
        details: DeliveryDetails | None,
    ) -> InventoryTransaction:
        placeholders = ", ".join("?" for _ in expected)
        cursor = await self._conn.execute(
            f"""
            UPDATE inventory_transactions SET
                delivery_status = ?,
                delivery_details = COALESCE(?, delivery_details),
                updated_at = ?
            WHERE id = ? AND delivery_status IN ({placeholders})
            """,
            (
                new.value,
                _details_json(details),
                datetime.now(UTC).isoformat(),
                transaction_id,
                *(status.value for status in expected),
            ),
        )
        current = await _fetch_transaction(self._conn, transaction_id)
        if current is None:
            raise TransactionNotFoundError(transaction_id)
        if cursor.rowcount != 1:
            raise InvalidTransitionError(
                transaction_id,
                field="delivery_status",
                current=current.delivery_status.value,
                target=new.value,
            )
        return current

    async def get_item(self, product_id: str, warehouse_id: str) -> InventoryItem | None:
        return await _fetch_item(self._conn, product_id, warehouse_id)

    async def ensure_item(self, product_id: str, warehouse_id: str) -> InventoryItem:
        now = datetime.now(UTC).isoformat()
        cursor = await self._conn.execute(
            """
            INSERT INTO inventory_items (product_id, warehouse_id, quantity, last_updated, created_at)
            VALUES (?, ?, 0, ?, ?)
            ON CONFLICT(product_id, warehouse_id) DO NOTHING
            """,
            (product_id, warehouse_id, now, now),
        )
        if cursor.rowcount == 1:
            logger.info("inventory_item_created", product_id=product_id, warehouse_id=warehouse_id)
        item = await _fetch_item(self._conn, product_id, warehouse_id)
        if item is None:
            raise DatabaseError(
                "ensure_item", f"no row for {product_id}/{warehouse_id} after insert"
            )
        return item

    async def compare_and_set_quantity(
        self,
        product_id: str,
        warehouse_id: str,
        expected: int,
        new: int,
    ) -> bool:
        cursor = await self._conn.execute(
            """
            UPDATE inventory_items SET quantity = ?, last_updated = ?
            WHERE product_id = ? AND warehouse_id = ? AND quantity = ?
            """,
            (new, datetime.now(UTC).isoformat(), product_id, warehouse_id, expected),
        )
        return cursor.rowcount == 1


class SQLiteLedgerStore(ILedgerStore):
    """SQLite implementation of ledger storage."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        return self._pool or await get_pool()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[SQLiteLedgerUnitOfWork]:
        """
        Open a unit of work.

        Usage:
            async with store.unit_of_work() as uow:
                entry = await uow.append(entry)
        """
        pool = await self._get_pool()
        async with pool.write_transaction() as conn:
            yield SQLiteLedgerUnitOfWork(conn)

    async def get(self, transaction_id: int) -> InventoryTransaction | None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_transaction(conn, transaction_id)

    async def find_by_idempotency_key(self, key: str) -> InventoryTransaction | None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_by_idempotency_key(conn, key)

    async def list_by_product_warehouse(
        self,
        product_id: str,
        warehouse_id: str,
        approved_only: bool = False,
    ) -> list[InventoryTransaction]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_pair_history(conn, product_id, warehouse_id, approved_only)

    async def list_transactions(
        self,
        product_id: str | None = None,
        warehouse_id: str | None = None,
        transaction_type: TransactionType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryTransaction]:
        conditions = []
        params: list = []
        if product_id:
            conditions.append("product_id = ?")
            params.append(product_id)
        if warehouse_id:
            conditions.append("(source_warehouse_id = ? OR target_warehouse_id = ?)")
            params.extend([warehouse_id, warehouse_id])
        if transaction_type:
            conditions.append("type = ?")
            params.append(transaction_type.value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM inventory_transactions
                {where}
                ORDER BY id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [_row_to_transaction(row) for row in rows]

    async def list_pending_approval(
        self, limit: int = 100, offset: int = 0
    ) -> list[InventoryTransaction]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM inventory_transactions
                WHERE type = 'check_out' AND approval_status = 'pending'
                ORDER BY id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [_row_to_transaction(row) for row in rows]

    async def list_pending_delivery(
        self, limit: int = 100, offset: int = 0
    ) -> list[InventoryTransaction]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM inventory_transactions
                WHERE type = 'check_out'
                  AND approval_status = 'approved'
                  AND delivery_status IN ('none', 'pending')
                ORDER BY id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [_row_to_transaction(row) for row in rows]

    async def list_warehouses_for_product(self, product_id: str) -> list[str]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT source_warehouse_id AS warehouse_id FROM inventory_transactions
                WHERE product_id = ? AND source_warehouse_id IS NOT NULL
                UNION
                SELECT target_warehouse_id FROM inventory_transactions
                WHERE product_id = ? AND target_warehouse_id IS NOT NULL
                ORDER BY warehouse_id
                """,
                (product_id, product_id),
            )
            rows = await cursor.fetchall()
            return [row[0] for row in rows]

    async def get_item(self, product_id: str, warehouse_id: str) -> InventoryItem | None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_item(conn, product_id, warehouse_id)

    async def list_items(
        self,
        warehouse_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            if warehouse_id:
                cursor = await conn.execute(
                    """
                    SELECT * FROM inventory_items
                    WHERE warehouse_id = ?
                    ORDER BY product_id, warehouse_id
                    LIMIT ? OFFSET ?
                    """,
                    (warehouse_id, limit, offset),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM inventory_items
                    ORDER BY product_id, warehouse_id
                    LIMIT ? OFFSET ?
                    """,
                    (limit, offset),
                )
            rows = await cursor.fetchall()
            return [_row_to_item(row) for row in rows]
