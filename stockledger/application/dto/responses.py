"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

# --- Transactions ---


class DeliveryDetailsResponse(BaseModel):
    """Batch and hand-over metadata."""

    batch_number: str | None = None
    expiry_date: date | None = None
    recipient_name: str | None = None
    recipient_department: str | None = None
    delivered_at: datetime | None = None
    notes: str | None = None


class TransactionResponse(BaseModel):
    """Ledger entry response DTO."""

    id: int
    type: str
    product_id: str
    source_warehouse_id: str | None = None
    target_warehouse_id: str | None = None
    quantity: int
    unit_price: float | None = None
    currency: str | None = None
    reference: str | None = None
    notes: str | None = None
    reason_code: str | None = None
    explanation: str | None = None
    actor_id: str | None = None
    approval_status: str
    approved_by: str | None = None
    approval_notes: str | None = None
    decided_at: datetime | None = None
    delivery_status: str
    delivery_details: DeliveryDetailsResponse | None = None
    linked_request_id: str | None = None
    po_line_id: str | None = None
    idempotency_key: str | None = None
    created_at: datetime
    updated_at: datetime


class PaginatedResponse(BaseModel):
    """Base for paginated responses."""

    total: int
    limit: int
    offset: int
    has_more: bool


class TransactionListResponse(PaginatedResponse):
    """Page of ledger entries."""

    items: list[TransactionResponse]


# --- Inventory ---


class BalanceResponse(BaseModel):
    """Live balance for one product in one warehouse."""

    product_id: str
    warehouse_id: str
    quantity: int
    last_updated: datetime | None = None


class InventoryStatusResponse(BaseModel):
    """Paginated inventory status response."""

    items: list[BalanceResponse]
    total: int


class BatchResponse(BaseModel):
    """Derived batch balance."""

    product_id: str
    warehouse_id: str
    batch_number: str
    quantity: int
    expiry_date: date | None = None
    expiry_status: str | None = None
    days_to_expiry: int | None = None
    unit_price: float | None = None
    total_value: float


class BatchListResponse(BaseModel):
    """Batches of a product, in one warehouse or across all of them."""

    product_id: str
    warehouse_id: str | None = None
    batches: list[BatchResponse]
    total_quantity: int
    total_value: float


class BalanceCheckResponse(BaseModel):
    """Live balance compared with a ledger replay."""

    product_id: str
    warehouse_id: str
    live_quantity: int
    replayed_quantity: int
    consistent: bool
    drift: int


class VerifyAllResponse(BaseModel):
    """Result of verifying every balance."""

    checked: int
    drifted: int
    mismatches: list[BalanceCheckResponse]


class RepairResponse(BaseModel):
    """Result of a balance repair."""

    before: BalanceCheckResponse
    repaired: bool
    quantity: int = Field(..., description="Live quantity after the repair")


# --- Health ---


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
