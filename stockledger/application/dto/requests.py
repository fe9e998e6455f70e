"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class SubmitTransactionRequest(BaseModel):
    """Request to submit a check-in, check-out or transfer.

    Batch metadata travels with the movement and is what the batch view
    folds; a check-in without a batch number lands in the unbatched bucket.
    """

    type: Literal["check_in", "check_out", "transfer"] = Field(
        ..., description="Kind of movement"
    )
    product_id: str = Field(..., min_length=1, description="Product ID")
    source_warehouse_id: str | None = Field(
        default=None, description="Warehouse stock leaves (check_out, transfer)"
    )
    target_warehouse_id: str | None = Field(
        default=None, description="Warehouse stock enters (check_in, transfer)"
    )
    quantity: int = Field(..., gt=0, description="Units moved")
    unit_price: float | None = Field(default=None, ge=0, description="Price per unit")
    currency: str | None = Field(default=None, examples=["AED", "USD"])
    reference: str | None = Field(default=None, description="GRN, PO or request reference")
    notes: str | None = Field(default=None, description="Additional notes")
    reason_code: str | None = Field(
        default=None,
        description="Required for movements not tied to a PO line or request",
        examples=["damaged", "stock_count", "internal_use"],
    )
    explanation: str | None = Field(
        default=None,
        description="Free-text justification, required with reason_code",
    )
    actor_id: str | None = Field(default=None, description="Submitting user")
    batch_number: str | None = Field(default=None, examples=["B100"])
    expiry_date: date | None = Field(default=None, description="Batch expiry date")
    recipient_name: str | None = None
    recipient_department: str | None = None
    linked_request_id: str | None = Field(
        default=None, description="Procurement request this check-out fulfils"
    )
    po_line_id: str | None = Field(
        default=None, description="Purchase-order line this check-in receives against"
    )
    idempotency_key: str | None = Field(
        default=None,
        max_length=200,
        description="Client key; re-submitting the same key returns the first result",
    )


class ApproveTransactionRequest(BaseModel):
    """Request to approve a pending check-out."""

    actor_id: str | None = Field(default=None, description="Approving user")


class RejectTransactionRequest(BaseModel):
    """Request to reject a pending check-out."""

    notes: str | None = Field(default=None, description="Rejection reason")
    actor_id: str | None = Field(default=None, description="Rejecting user")


class RecordDeliveryRequest(BaseModel):
    """Request to record the hand-over of an approved check-out."""

    batch_number: str | None = None
    expiry_date: date | None = None
    recipient_name: str | None = Field(default=None, description="Person receiving the goods")
    recipient_department: str | None = None
    delivered_at: datetime | None = Field(
        default=None, description="Hand-over time (defaults to now)"
    )
    notes: str | None = None
    actor_id: str | None = Field(default=None, description="User recording the delivery")


class RepairBalanceRequest(BaseModel):
    """Request to reset a live balance to its replayed value."""

    actor_id: str | None = Field(default=None, description="User requesting the repair")
