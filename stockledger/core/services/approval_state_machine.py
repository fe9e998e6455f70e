"""
Approval/Delivery State Machine for check-outs.

    pending ──approve──▶ approved ──record_delivery──▶ delivered
       └─────reject────▶ rejected

Approval and its inventory decrement share one unit of work: if the
decrement fails the status stays pending. Delivery is recorded at most once.
"""

from __future__ import annotations

from datetime import UTC, datetime

from stockledger.config import get_logger
from stockledger.core.entities.transaction import (
    ApprovalStatus,
    DeliveryDetails,
    DeliveryStatus,
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.exceptions import (
    AlreadyDeliveredError,
    InvalidTransitionError,
    TransactionNotFoundError,
)
from stockledger.core.interfaces.collaborators import IAuditSink
from stockledger.core.interfaces.ledger_store import ILedgerStore, ILedgerUnitOfWork
from stockledger.core.services.audit import record_audit, transaction_event
from stockledger.core.services.balance_projector import BalanceProjector

logger = get_logger(__name__)


class ApprovalStateMachine:
    """Governs the check-out lifecycle."""

    def __init__(
        self,
        store: ILedgerStore,
        projector: BalanceProjector,
        audit_sink: IAuditSink | None = None,
    ) -> None:
        self._store = store
        self._projector = projector
        self._audit_sink = audit_sink

    async def admit(
        self,
        uow: ILedgerUnitOfWork,
        entry: InventoryTransaction,
        auto_approve: bool,
    ) -> InventoryTransaction:
        """
        Append a new check-out inside the caller's unit of work.

        Auto-approved check-outs enter as approved and are decremented in the
        same unit; others wait in pending. Delivery is pending either way.
        """
        entry = entry.model_copy(
            update={
                "approval_status": (
                    ApprovalStatus.APPROVED if auto_approve else ApprovalStatus.PENDING
                ),
                "approved_by": entry.actor_id if auto_approve else None,
                "decided_at": datetime.now(UTC) if auto_approve else None,
                "delivery_status": DeliveryStatus.PENDING,
            }
        )
        entry = await uow.append(entry)
        if auto_approve:
            await self._projector.apply(uow, entry)
        return entry

    async def approve(
        self,
        transaction_id: int,
        actor_id: str | None = None,
    ) -> InventoryTransaction:
        """Move a pending check-out to approved and decrement its source."""
        async with self._store.unit_of_work() as uow:
            entry = await self._get_checkout(uow, transaction_id, "approval_status")
            updated = await uow.set_approval_status(
                transaction_id,
                expected=ApprovalStatus.PENDING,
                new=ApprovalStatus.APPROVED,
                actor_id=actor_id,
            )
            await self._projector.apply(uow, updated)

        logger.info(
            "checkout_approved",
            transaction_id=transaction_id,
            product_id=entry.product_id,
            warehouse_id=entry.source_warehouse_id,
            quantity=entry.quantity,
            actor_id=actor_id,
        )
        await record_audit(
            self._audit_sink,
            transaction_event("checkout_approved", updated, actor_id=actor_id),
        )
        return updated

    async def reject(
        self,
        transaction_id: int,
        notes: str | None = None,
        actor_id: str | None = None,
    ) -> InventoryTransaction:
        """Move a pending check-out to rejected. Inventory is untouched."""
        async with self._store.unit_of_work() as uow:
            await self._get_checkout(uow, transaction_id, "approval_status")
            updated = await uow.set_approval_status(
                transaction_id,
                expected=ApprovalStatus.PENDING,
                new=ApprovalStatus.REJECTED,
                actor_id=actor_id,
                notes=notes,
            )

        logger.info("checkout_rejected", transaction_id=transaction_id, actor_id=actor_id)
        await record_audit(
            self._audit_sink,
            transaction_event("checkout_rejected", updated, actor_id=actor_id, notes=notes),
        )
        return updated

    async def record_delivery(
        self,
        transaction_id: int,
        details: DeliveryDetails,
        actor_id: str | None = None,
    ) -> InventoryTransaction:
        """
        Mark an approved check-out as delivered.

        Raises:
            AlreadyDeliveredError: delivery was recorded before; the stored
                details are left as they were.
            InvalidTransitionError: the check-out is not approved.
        """
        async with self._store.unit_of_work() as uow:
            entry = await self._get_checkout(uow, transaction_id, "delivery_status")

            if entry.delivery_status is DeliveryStatus.DELIVERED:
                raise AlreadyDeliveredError(transaction_id)
            if entry.approval_status is not ApprovalStatus.APPROVED:
                raise InvalidTransitionError(
                    transaction_id,
                    field="approval_status",
                    current=entry.approval_status.value,
                    target=ApprovalStatus.APPROVED.value,
                    message=(
                        f"Delivery requires an approved check-out; transaction "
                        f"{transaction_id} is {entry.approval_status.value}"
                    ),
                )

            merged = (entry.delivery_details or DeliveryDetails()).merged_with(details)
            if merged.delivered_at is None:
                merged = merged.model_copy(update={"delivered_at": datetime.now(UTC)})

            try:
                updated = await uow.set_delivery_status(
                    transaction_id,
                    expected=(DeliveryStatus.NONE, DeliveryStatus.PENDING),
                    new=DeliveryStatus.DELIVERED,
                    details=merged,
                )
            except InvalidTransitionError as e:
                if e.details.get("current") == DeliveryStatus.DELIVERED.value:
                    raise AlreadyDeliveredError(transaction_id) from e
                raise

        logger.info(
            "delivery_recorded",
            transaction_id=transaction_id,
            batch_number=merged.batch_number,
            recipient=merged.recipient_name,
        )
        await record_audit(
            self._audit_sink,
            transaction_event(
                "delivery_recorded",
                updated,
                actor_id=actor_id,
                delivery_details=merged.model_dump(mode="json", exclude_none=True),
            ),
        )
        return updated

    @staticmethod
    async def _get_checkout(
        uow: ILedgerUnitOfWork, transaction_id: int, field: str
    ) -> InventoryTransaction:
        entry = await uow.get(transaction_id)
        if entry is None:
            raise TransactionNotFoundError(transaction_id)
        if entry.type is not TransactionType.CHECK_OUT:
            raise InvalidTransitionError(
                transaction_id,
                field=field,
                current=getattr(entry, field).value,
                target="-",
                message=f"Transaction {transaction_id} is a {entry.type.value}, not a check_out",
            )
        return entry
