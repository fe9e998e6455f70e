"""
Transaction Engine.

Validates and admits check-in, check-out and transfer requests. Every
admission writes exactly one ledger entry, and the entry together with its
balance effect commits in a single unit of work, so a failed validation or
an insufficient-stock decrement leaves nothing behind.
"""

from __future__ import annotations

from stockledger.config import get_logger
from stockledger.core.entities.request import TransactionRequest
from stockledger.core.entities.transaction import (
    ApprovalStatus,
    DeliveryStatus,
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.exceptions import (
    AuditRequirementNotMetError,
    ExceedsPendingError,
    SameWarehouseError,
    ValidationError,
)
from stockledger.core.interfaces.collaborators import (
    IActorDirectory,
    IAuditSink,
    IProcurementLookup,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore, ILedgerUnitOfWork
from stockledger.core.services.approval_state_machine import ApprovalStateMachine
from stockledger.core.services.audit import record_audit, transaction_event
from stockledger.core.services.balance_projector import BalanceProjector

logger = get_logger(__name__)


class TransactionEngine:
    """Entry point for new ledger entries."""

    def __init__(
        self,
        store: ILedgerStore,
        projector: BalanceProjector,
        state_machine: ApprovalStateMachine,
        procurement: IProcurementLookup | None = None,
        actors: IActorDirectory | None = None,
        audit_sink: IAuditSink | None = None,
        min_explanation_length: int = 10,
    ) -> None:
        self._store = store
        self._projector = projector
        self._state_machine = state_machine
        self._procurement = procurement
        self._actors = actors
        self._audit_sink = audit_sink
        self._min_explanation_length = min_explanation_length

    async def submit(self, request: TransactionRequest) -> InventoryTransaction:
        """
        Validate and admit a request.

        A request carrying an idempotency key that was already admitted
        returns the stored entry and writes nothing.

        Raises:
            ValidationError: Missing or contradictory warehouse fields.
            SameWarehouseError: Transfer within one warehouse.
            ExceedsPendingError: PO-linked check-in above the outstanding amount.
            AuditRequirementNotMetError: Unlinked movement without reason/explanation.
            InsufficientStockError: Transfer or auto-approved check-out
                exceeding the source balance.
        """
        if request.idempotency_key:
            existing = await self._store.find_by_idempotency_key(request.idempotency_key)
            if existing is not None:
                logger.info(
                    "transaction_replayed",
                    transaction_id=existing.id,
                    idempotency_key=request.idempotency_key,
                )
                return existing

        auto_approve = False
        ordered: int | None = None
        if request.type is TransactionType.CHECK_IN:
            ordered = await self._validate_check_in(request)
        elif request.type is TransactionType.CHECK_OUT:
            self._validate_check_out(request)
            auto_approve = await self._can_auto_approve(request.actor_id)
        else:
            self._validate_transfer(request)

        entry = request.to_entry()

        async with self._store.unit_of_work() as uow:
            if request.idempotency_key:
                existing = await uow.find_by_idempotency_key(request.idempotency_key)
                if existing is not None:
                    return existing

            if ordered is not None:
                await self._check_po_line_capacity(uow, entry, ordered)

            if entry.type is TransactionType.CHECK_OUT:
                entry = await self._state_machine.admit(uow, entry, auto_approve)
            else:
                entry = entry.model_copy(
                    update={
                        "approval_status": ApprovalStatus.APPROVED,
                        "delivery_status": DeliveryStatus.NONE,
                    }
                )
                entry = await uow.append(entry)
                await self._projector.apply(uow, entry)

        logger.info(
            "transaction_submitted",
            transaction_id=entry.id,
            type=entry.type.value,
            product_id=entry.product_id,
            source=entry.source_warehouse_id,
            target=entry.target_warehouse_id,
            quantity=entry.quantity,
            approval_status=entry.approval_status.value,
        )
        await record_audit(
            self._audit_sink,
            transaction_event("transaction_admitted", entry, auto_approved=auto_approve),
        )
        return entry

    async def _validate_check_in(self, request: TransactionRequest) -> int | None:
        """Validate a check-in; returns the ordered quantity of its PO line, if any."""
        if not request.target_warehouse_id:
            raise ValidationError("target_warehouse_id", "required for check_in")
        if request.source_warehouse_id:
            raise ValidationError(
                "source_warehouse_id",
                "must be absent for check_in",
                request.source_warehouse_id,
            )

        if request.po_line_id:
            if self._procurement is None:
                raise ValidationError(
                    "po_line_id", "no procurement lookup is configured", request.po_line_id
                )
            outstanding = await self._procurement.get_outstanding_quantity(request.po_line_id)
            if request.quantity > outstanding:
                raise ExceedsPendingError(request.po_line_id, request.quantity, outstanding)
            return await self._procurement.get_ordered_quantity(request.po_line_id)

        self._require_audit_fields(request, "check-in without a purchase order line")
        return None

    async def _check_po_line_capacity(
        self, uow: ILedgerUnitOfWork, entry: InventoryTransaction, ordered: int
    ) -> None:
        # Receipts committed since the pre-check are visible here; writers are serialized.
        received = await uow.received_for_po_line(entry.po_line_id)
        outstanding = max(0, ordered - received)
        if entry.quantity > outstanding:
            logger.info(
                "po_line_over_receipt_rejected",
                po_line_id=entry.po_line_id,
                requested=entry.quantity,
                outstanding=outstanding,
            )
            raise ExceedsPendingError(entry.po_line_id, entry.quantity, outstanding)

    def _validate_check_out(self, request: TransactionRequest) -> None:
        if not request.source_warehouse_id:
            raise ValidationError("source_warehouse_id", "required for check_out")
        if request.target_warehouse_id:
            raise ValidationError(
                "target_warehouse_id",
                "must be absent for check_out",
                request.target_warehouse_id,
            )
        if not request.linked_request_id:
            self._require_audit_fields(request, "check-out without a linked request")

    def _validate_transfer(self, request: TransactionRequest) -> None:
        if not request.source_warehouse_id:
            raise ValidationError("source_warehouse_id", "required for transfer")
        if not request.target_warehouse_id:
            raise ValidationError("target_warehouse_id", "required for transfer")
        if request.source_warehouse_id == request.target_warehouse_id:
            raise SameWarehouseError(request.source_warehouse_id)

    def _require_audit_fields(self, request: TransactionRequest, context: str) -> None:
        if not (request.reason_code or "").strip():
            raise AuditRequirementNotMetError(
                f"{context} requires a reason code", self._min_explanation_length
            )
        explanation = (request.explanation or "").strip()
        if len(explanation) < self._min_explanation_length:
            raise AuditRequirementNotMetError(
                f"{context} requires an explanation of at least "
                f"{self._min_explanation_length} characters",
                self._min_explanation_length,
            )

    async def _can_auto_approve(self, actor_id: str | None) -> bool:
        if not actor_id or self._actors is None:
            return False
        return await self._actors.has_auto_approval_capability(actor_id)
