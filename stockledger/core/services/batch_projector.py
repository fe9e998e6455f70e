"""
Batch Projector.

Re-derives per-batch quantity, expiry and price for a product in a
warehouse by folding the approved ledger history. Nothing is cached: every
call replays the entries, so the result always agrees with a full replay.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from stockledger.config import get_logger
from stockledger.core.entities.batch import BatchBalance, classify_expiry
from stockledger.core.entities.transaction import (
    ApprovalStatus,
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore

logger = get_logger(__name__)


@dataclass
class _BatchAccumulator:
    quantity: int = 0
    expiry_date: date | None = None
    unit_price: float | None = None


class BatchProjector:
    """Read-only batch view over the ledger."""

    def __init__(
        self,
        store: ILedgerStore,
        expiring_soon_days: int = 30,
        unbatched_label: str = "No Batch",
    ) -> None:
        self._store = store
        self._expiring_soon_days = expiring_soon_days
        self._unbatched_label = unbatched_label

    def fold(
        self,
        entries: Iterable[InventoryTransaction],
        product_id: str,
        warehouse_id: str,
        today: date,
    ) -> list[BatchBalance]:
        """
        Fold entries (oldest first) into batch balances.

        Approved check-ins into the warehouse add, approved check-outs from
        it subtract. Expiry and unit price come from the most recent
        contributing check-in that carries them. Batches that end at or
        below zero are omitted.
        """
        batches: dict[str, _BatchAccumulator] = {}

        for entry in entries:
            if entry.product_id != product_id:
                continue
            if entry.approval_status is not ApprovalStatus.APPROVED:
                continue

            if entry.type is TransactionType.CHECK_IN and entry.target_warehouse_id == warehouse_id:
                acc = batches.setdefault(self._batch_key(entry), _BatchAccumulator())
                acc.quantity += entry.quantity
                if entry.expiry_date is not None:
                    acc.expiry_date = entry.expiry_date
                if entry.unit_price is not None:
                    acc.unit_price = entry.unit_price
            elif entry.type is TransactionType.CHECK_OUT and entry.source_warehouse_id == warehouse_id:
                acc = batches.setdefault(self._batch_key(entry), _BatchAccumulator())
                acc.quantity -= entry.quantity

        result = []
        for batch_number, acc in batches.items():
            if acc.quantity <= 0:
                continue
            result.append(
                BatchBalance(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    batch_number=batch_number,
                    quantity=acc.quantity,
                    expiry_date=acc.expiry_date,
                    unit_price=acc.unit_price,
                    expiry_status=classify_expiry(
                        acc.expiry_date, today, self._expiring_soon_days
                    ),
                    days_to_expiry=(
                        (acc.expiry_date - today).days if acc.expiry_date else None
                    ),
                )
            )

        # Soonest expiry first, undated batches last
        result.sort(key=lambda b: (b.expiry_date is None, b.expiry_date or today, b.batch_number))
        return result

    def _batch_key(self, entry: InventoryTransaction) -> str:
        return entry.batch_number or self._unbatched_label

    async def project_batches(
        self,
        product_id: str,
        warehouse_id: str,
        today: date | None = None,
    ) -> list[BatchBalance]:
        """Batch balances for one product in one warehouse."""
        entries = await self._store.list_by_product_warehouse(
            product_id, warehouse_id, approved_only=True
        )
        batches = self.fold(entries, product_id, warehouse_id, today or date.today())
        logger.debug(
            "batches_projected",
            product_id=product_id,
            warehouse_id=warehouse_id,
            entries=len(entries),
            batches=len(batches),
        )
        return batches

    async def project_product_batches(
        self,
        product_id: str,
        today: date | None = None,
    ) -> list[BatchBalance]:
        """Batch balances for a product across every warehouse it touches."""
        today = today or date.today()
        batches: list[BatchBalance] = []
        for warehouse_id in await self._store.list_warehouses_for_product(product_id):
            batches.extend(await self.project_batches(product_id, warehouse_id, today))
        return batches
