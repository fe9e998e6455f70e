"""Ledger entry entities."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    """Kinds of inventory events."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    TRANSFER = "transfer"


class ApprovalStatus(str, Enum):
    """Approval state of a ledger entry. APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class DeliveryStatus(str, Enum):
    """Delivery state of a check-out. DELIVERED is terminal."""

    NONE = "none"
    PENDING = "pending"
    DELIVERED = "delivered"


class DeliveryDetails(BaseModel):
    """Batch and hand-over metadata attached to an entry."""

    batch_number: str | None = None
    expiry_date: date | None = None
    recipient_name: str | None = None
    recipient_department: str | None = None
    delivered_at: datetime | None = None
    notes: str | None = None

    def merged_with(self, other: "DeliveryDetails") -> "DeliveryDetails":
        """Overlay the non-null fields of `other` on a copy of self."""
        update = other.model_dump(exclude_none=True)
        return self.model_copy(update=update)


class InventoryTransaction(BaseModel):
    """One immutable inventory event.

    Only approval_status (with its decision metadata) and delivery_status
    (with delivery_details) change after the entry is appended.
    """

    id: int | None = None
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
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED
    approved_by: str | None = None
    approval_notes: str | None = None
    decided_at: datetime | None = None
    delivery_status: DeliveryStatus = DeliveryStatus.NONE
    delivery_details: DeliveryDetails | None = None
    linked_request_id: str | None = None
    po_line_id: str | None = None
    idempotency_key: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def batch_number(self) -> str | None:
        if self.delivery_details is None:
            return None
        return self.delivery_details.batch_number or None

    @property
    def expiry_date(self) -> date | None:
        if self.delivery_details is None:
            return None
        return self.delivery_details.expiry_date

    def quantity_deltas(self) -> list[tuple[str, int]]:
        """(warehouse_id, signed quantity) pairs this entry contributes.

        Decrements come first so a transfer fails before touching its target.
        """
        if self.type is TransactionType.CHECK_IN:
            return [(self.target_warehouse_id, self.quantity)]  # type: ignore[list-item]
        if self.type is TransactionType.CHECK_OUT:
            return [(self.source_warehouse_id, -self.quantity)]  # type: ignore[list-item]
        return [
            (self.source_warehouse_id, -self.quantity),  # type: ignore[list-item]
            (self.target_warehouse_id, self.quantity),  # type: ignore[list-item]
        ]

    def delta_for(self, warehouse_id: str) -> int:
        """Net quantity effect of this entry on one warehouse."""
        return sum(delta for wh, delta in self.quantity_deltas() if wh == warehouse_id)
