"""
Balance Projector.

Maintains the live quantity per (product, warehouse) from ledger entries and
recomputes it from history for verification and repair. Every quantity
write is a compare-and-swap against the value just read; a lost race is
retried a bounded number of times.

The SQLite store runs every unit of work under BEGIN IMMEDIATE, so no other
writer can interleave between the read and the swap and the retry never
fires there. It guards store implementations that do not serialize writers.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from stockledger.config import get_logger
from stockledger.core.entities.inventory import BalanceCheck, InventoryItem
from stockledger.core.entities.transaction import ApprovalStatus, InventoryTransaction
from stockledger.core.exceptions import ConcurrencyConflictError, InsufficientStockError
from stockledger.core.interfaces.ledger_store import ILedgerStore, ILedgerUnitOfWork

logger = get_logger(__name__)


def fold_balance(entries: Iterable[InventoryTransaction], warehouse_id: str) -> int:
    """Net quantity of approved entries for one warehouse."""
    return sum(
        entry.delta_for(warehouse_id)
        for entry in entries
        if entry.approval_status is ApprovalStatus.APPROVED
    )


def _log_cas_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "balance_cas_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


class BalanceProjector:
    """Applies entry effects to InventoryItem aggregates."""

    def __init__(self, store: ILedgerStore, cas_max_retries: int = 5) -> None:
        self._store = store
        self._cas_max_retries = max(1, cas_max_retries)

    async def apply(
        self, uow: ILedgerUnitOfWork, entry: InventoryTransaction
    ) -> list[InventoryItem]:
        """
        Apply an entry's quantity effect inside the caller's unit of work.

        Called exactly once per entry whose effect counts: check-in and
        transfer on admission, check-out on approval. Source decrements run
        before target increments, so an InsufficientStockError leaves both
        sides untouched once the unit of work rolls back.

        Returns:
            The updated aggregates, in effect order.
        """
        updated = []
        for warehouse_id, delta in entry.quantity_deltas():
            updated.append(
                await self._adjust(uow, entry.product_id, warehouse_id, delta)
            )

        logger.info(
            "balance_applied",
            transaction_id=entry.id,
            type=entry.type.value,
            product_id=entry.product_id,
            balances={item.warehouse_id: item.quantity for item in updated},
        )
        return updated

    async def _adjust(
        self,
        uow: ILedgerUnitOfWork,
        product_id: str,
        warehouse_id: str,
        delta: int,
    ) -> InventoryItem:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._cas_max_retries),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=_log_cas_retry,
        )
        try:
            return await retrying(self._try_adjust, uow, product_id, warehouse_id, delta)
        except RetryError as e:
            logger.error(
                "balance_cas_exhausted",
                product_id=product_id,
                warehouse_id=warehouse_id,
                attempts=self._cas_max_retries,
            )
            item = await uow.get_item(product_id, warehouse_id)
            raise InsufficientStockError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                requested=abs(delta),
                available=item.quantity if item else 0,
            ) from e

    async def _try_adjust(
        self,
        uow: ILedgerUnitOfWork,
        product_id: str,
        warehouse_id: str,
        delta: int,
    ) -> InventoryItem:
        if delta >= 0:
            item = await uow.ensure_item(product_id, warehouse_id)
        else:
            found = await uow.get_item(product_id, warehouse_id)
            if found is None:
                raise InsufficientStockError(product_id, warehouse_id, -delta, 0)
            item = found

        current = item.quantity
        new = current + delta
        if new < 0:
            raise InsufficientStockError(product_id, warehouse_id, -delta, current)

        if not await uow.compare_and_set_quantity(product_id, warehouse_id, current, new):
            logger.warning(
                "balance_cas_conflict",
                product_id=product_id,
                warehouse_id=warehouse_id,
                expected=current,
            )
            raise ConcurrencyConflictError(
                f"inventory_item:{product_id}:{warehouse_id}", current
            )

        return item.model_copy(
            update={"quantity": new, "last_updated": datetime.now(UTC)}
        )

    async def replay(self, product_id: str, warehouse_id: str) -> int:
        """Recompute a balance from the full approved-entry history."""
        entries = await self._store.list_by_product_warehouse(
            product_id, warehouse_id, approved_only=True
        )
        return fold_balance(entries, warehouse_id)

    async def verify(self, product_id: str, warehouse_id: str) -> BalanceCheck:
        """Compare the live aggregate with a replay of the ledger."""
        item = await self._store.get_item(product_id, warehouse_id)
        replayed = await self.replay(product_id, warehouse_id)
        check = BalanceCheck(
            product_id=product_id,
            warehouse_id=warehouse_id,
            live_quantity=item.quantity if item else 0,
            replayed_quantity=replayed,
        )
        if not check.consistent:
            logger.warning(
                "balance_drift_detected",
                product_id=product_id,
                warehouse_id=warehouse_id,
                live=check.live_quantity,
                replayed=check.replayed_quantity,
            )
        return check

    async def verify_all(self, page_size: int = 500) -> list[BalanceCheck]:
        """Verify every InventoryItem in the store."""
        checks: list[BalanceCheck] = []
        offset = 0
        while True:
            items = await self._store.list_items(limit=page_size, offset=offset)
            for item in items:
                checks.append(await self.verify(item.product_id, item.warehouse_id))
            if len(items) < page_size:
                break
            offset += page_size

        logger.info(
            "balance_verification_complete",
            checked=len(checks),
            drifted=sum(1 for c in checks if not c.consistent),
        )
        return checks

    async def repair(self, product_id: str, warehouse_id: str) -> BalanceCheck:
        """
        Reset the live aggregate to the replayed value.

        Returns the check as observed before the repair.
        """
        async with self._store.unit_of_work() as uow:
            entries = await uow.list_by_product_warehouse(
                product_id, warehouse_id, approved_only=True
            )
            replayed = fold_balance(entries, warehouse_id)
            item = await uow.ensure_item(product_id, warehouse_id)
            check = BalanceCheck(
                product_id=product_id,
                warehouse_id=warehouse_id,
                live_quantity=item.quantity,
                replayed_quantity=replayed,
            )
            if not check.consistent:
                await self._adjust(uow, product_id, warehouse_id, -check.drift)

        logger.info(
            "balance_repaired" if not check.consistent else "balance_repair_noop",
            product_id=product_id,
            warehouse_id=warehouse_id,
            live=check.live_quantity,
            replayed=check.replayed_quantity,
        )
        return check
