"""Inbound submission entity."""

from pydantic import BaseModel, Field

from stockledger.core.entities.transaction import (
    DeliveryDetails,
    InventoryTransaction,
    TransactionType,
)


class TransactionRequest(BaseModel):
    """A movement to be validated and admitted to the ledger."""

    type: TransactionType
    product_id: str
    source_warehouse_id: str | None = None
    target_warehouse_id: str | None = None
    quantity: int = Field(..., gt=0)
    unit_price: float | None = None
    currency: str | None = None
    reference: str | None = None
    notes: str | None = None
    reason_code: str | None = None
    explanation: str | None = None
    actor_id: str | None = None
    delivery_details: DeliveryDetails | None = None
    linked_request_id: str | None = None
    po_line_id: str | None = None
    idempotency_key: str | None = None

    def to_entry(self) -> InventoryTransaction:
        """Ledger entry carrying this request's fields, not yet admitted."""
        return InventoryTransaction(**self.model_dump(exclude_none=True))
