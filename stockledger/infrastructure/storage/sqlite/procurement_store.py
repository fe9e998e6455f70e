"""SQLite-backed purchase-order lookup used by check-in validation."""

from datetime import UTC, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.exceptions import PurchaseOrderLineNotFoundError
from stockledger.core.interfaces.collaborators import IProcurementLookup
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from stockledger.infrastructure.storage.sqlite.ledger_store import sum_received_for_po_line

logger = get_logger(__name__)


async def _fetch_ordered_quantity(conn: aiosqlite.Connection, po_line_id: str) -> int:
    cursor = await conn.execute(
        "SELECT ordered_quantity FROM purchase_order_lines WHERE id = ?", (po_line_id,)
    )
    row = await cursor.fetchone()
    if row is None:
        raise PurchaseOrderLineNotFoundError(po_line_id)
    return row["ordered_quantity"]


class SQLiteProcurementLookup(IProcurementLookup):
    """
    Outstanding quantity per purchase-order line.

    Outstanding is the ordered quantity minus every approved check-in
    already linked to the line.
    """

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        return self._pool or await get_pool()

    async def register_line(
        self,
        po_line_id: str,
        product_id: str,
        ordered_quantity: int,
        purchase_order_id: str | None = None,
    ) -> None:
        """Create or replace a purchase-order line."""
        pool = await self._get_pool()
        async with pool.write_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO purchase_order_lines (
                    id, purchase_order_id, product_id, ordered_quantity, created_at
                ) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    purchase_order_id = excluded.purchase_order_id,
                    product_id = excluded.product_id,
                    ordered_quantity = excluded.ordered_quantity
                """,
                (
                    po_line_id,
                    purchase_order_id,
                    product_id,
                    ordered_quantity,
                    datetime.now(UTC).isoformat(),
                ),
            )
        logger.info(
            "po_line_registered",
            po_line_id=po_line_id,
            product_id=product_id,
            ordered_quantity=ordered_quantity,
        )

    async def get_ordered_quantity(self, po_line_id: str) -> int:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await _fetch_ordered_quantity(conn, po_line_id)

    async def get_outstanding_quantity(self, po_line_id: str) -> int:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            ordered = await _fetch_ordered_quantity(conn, po_line_id)
            received = await sum_received_for_po_line(conn, po_line_id)
        return max(0, ordered - received)
