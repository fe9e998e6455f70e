"""Check-out lifecycle use cases: approve, reject, record delivery."""

from stockledger.application.dto.requests import (
    ApproveTransactionRequest,
    RecordDeliveryRequest,
    RejectTransactionRequest,
)
from stockledger.application.dto.responses import TransactionResponse
from stockledger.application.use_cases.mappers import transaction_to_response
from stockledger.config import get_logger
from stockledger.core.entities import DeliveryDetails, InventoryTransaction
from stockledger.core.services import ApprovalStateMachine

logger = get_logger(__name__)


class _CheckoutUseCase:
    def __init__(self, state_machine: ApprovalStateMachine | None = None):
        self._state_machine = state_machine

    async def _get_state_machine(self) -> ApprovalStateMachine:
        if self._state_machine is None:
            from stockledger.application.services import get_state_machine

            self._state_machine = await get_state_machine()
        return self._state_machine

    def to_response(self, entry: InventoryTransaction) -> TransactionResponse:
        """Convert result to API response."""
        return transaction_to_response(entry)


class ApproveCheckoutUseCase(_CheckoutUseCase):
    """Approve a pending check-out and decrement its source warehouse."""

    async def execute(
        self, transaction_id: int, request: ApproveTransactionRequest
    ) -> InventoryTransaction:
        logger.info("approve_checkout_started", transaction_id=transaction_id)
        machine = await self._get_state_machine()
        return await machine.approve(transaction_id, actor_id=request.actor_id)


class RejectCheckoutUseCase(_CheckoutUseCase):
    """Reject a pending check-out."""

    async def execute(
        self, transaction_id: int, request: RejectTransactionRequest
    ) -> InventoryTransaction:
        logger.info("reject_checkout_started", transaction_id=transaction_id)
        machine = await self._get_state_machine()
        return await machine.reject(
            transaction_id, notes=request.notes, actor_id=request.actor_id
        )


class RecordDeliveryUseCase(_CheckoutUseCase):
    """Record the hand-over of an approved check-out, at most once."""

    async def execute(
        self, transaction_id: int, request: RecordDeliveryRequest
    ) -> InventoryTransaction:
        logger.info("record_delivery_started", transaction_id=transaction_id)
        machine = await self._get_state_machine()
        details = DeliveryDetails(**request.model_dump(exclude={"actor_id"}))
        return await machine.record_delivery(
            transaction_id, details, actor_id=request.actor_id
        )
