"""Submit Transaction Use Case: admit a check-in, check-out or transfer."""

from stockledger.application.dto.requests import SubmitTransactionRequest
from stockledger.application.dto.responses import TransactionResponse
from stockledger.application.use_cases.mappers import transaction_to_response
from stockledger.config import get_logger
from stockledger.core.entities import (
    DeliveryDetails,
    InventoryTransaction,
    TransactionRequest,
    TransactionType,
)
from stockledger.core.services import TransactionEngine

logger = get_logger(__name__)

_DETAIL_FIELDS = ("batch_number", "expiry_date", "recipient_name", "recipient_department")


class SubmitTransactionUseCase:
    """Validate and admit one inventory movement."""

    def __init__(self, engine: TransactionEngine | None = None):
        self._engine = engine

    async def _get_engine(self) -> TransactionEngine:
        if self._engine is None:
            from stockledger.application.services import get_transaction_engine

            self._engine = await get_transaction_engine()
        return self._engine

    async def execute(self, request: SubmitTransactionRequest) -> InventoryTransaction:
        """Execute submit use case."""
        logger.info(
            "submit_transaction_started",
            type=request.type,
            product_id=request.product_id,
            quantity=request.quantity,
        )

        engine = await self._get_engine()
        return await engine.submit(self._to_domain(request))

    @staticmethod
    def _to_domain(request: SubmitTransactionRequest) -> TransactionRequest:
        detail_values = {f: getattr(request, f) for f in _DETAIL_FIELDS}
        details = (
            DeliveryDetails(**detail_values)
            if any(v is not None for v in detail_values.values())
            else None
        )
        return TransactionRequest(
            type=TransactionType(request.type),
            product_id=request.product_id,
            source_warehouse_id=request.source_warehouse_id,
            target_warehouse_id=request.target_warehouse_id,
            quantity=request.quantity,
            unit_price=request.unit_price,
            currency=request.currency,
            reference=request.reference,
            notes=request.notes,
            reason_code=request.reason_code,
            explanation=request.explanation,
            actor_id=request.actor_id,
            delivery_details=details,
            linked_request_id=request.linked_request_id,
            po_line_id=request.po_line_id,
            idempotency_key=request.idempotency_key,
        )

    def to_response(self, entry: InventoryTransaction) -> TransactionResponse:
        """Convert result to API response."""
        return transaction_to_response(entry)
