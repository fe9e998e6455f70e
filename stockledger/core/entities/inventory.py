"""Inventory aggregate entities."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class InventoryItem(BaseModel):
    """Aggregate stock for one (product, warehouse) pair."""

    id: int | None = None
    product_id: str
    warehouse_id: str
    quantity: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.warehouse_id)


class BalanceCheck(BaseModel):
    """Live aggregate compared against a full replay of the ledger."""

    product_id: str
    warehouse_id: str
    live_quantity: int
    replayed_quantity: int

    @property
    def consistent(self) -> bool:
        return self.live_quantity == self.replayed_quantity

    @property
    def drift(self) -> int:
        return self.live_quantity - self.replayed_quantity
