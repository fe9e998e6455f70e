"""Get Batches Use Case: batch quantities and expiry from ledger replay."""

from datetime import date

from stockledger.application.dto.responses import BatchListResponse
from stockledger.application.use_cases.mappers import batch_to_response
from stockledger.config import get_logger
from stockledger.core.services import BatchProjector

logger = get_logger(__name__)


class GetBatchesUseCase:
    """Project batch balances for a product."""

    def __init__(self, batch_projector: BatchProjector | None = None):
        self._batch_projector = batch_projector

    async def _get_batch_projector(self) -> BatchProjector:
        if self._batch_projector is None:
            from stockledger.application.services import get_batch_projector

            self._batch_projector = await get_batch_projector()
        return self._batch_projector

    async def execute(
        self,
        product_id: str,
        warehouse_id: str | None = None,
        today: date | None = None,
    ) -> BatchListResponse:
        """Batches in one warehouse, or in every warehouse when none is given."""
        projector = await self._get_batch_projector()
        if warehouse_id:
            batches = await projector.project_batches(product_id, warehouse_id, today)
        else:
            batches = await projector.project_product_batches(product_id, today)

        return BatchListResponse(
            product_id=product_id,
            warehouse_id=warehouse_id,
            batches=[batch_to_response(b) for b in batches],
            total_quantity=sum(b.quantity for b in batches),
            total_value=round(sum(b.total_value for b in batches), 2),
        )
