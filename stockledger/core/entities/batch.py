"""Batch projection entities."""

from datetime import date
from enum import Enum

from pydantic import BaseModel


class ExpiryStatus(str, Enum):
    """Expiry classification of a batch relative to today."""

    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    VALID = "valid"


def classify_expiry(
    expiry_date: date | None,
    today: date,
    soon_days: int = 30,
) -> ExpiryStatus | None:
    """Pure expiry classification; no expiry date means no classification."""
    if expiry_date is None:
        return None
    if expiry_date < today:
        return ExpiryStatus.EXPIRED
    if (expiry_date - today).days <= soon_days:
        return ExpiryStatus.EXPIRING_SOON
    return ExpiryStatus.VALID


class BatchBalance(BaseModel):
    """Derived quantity of one batch of a product in one warehouse."""

    product_id: str
    warehouse_id: str
    batch_number: str
    quantity: int
    expiry_date: date | None = None
    unit_price: float | None = None
    expiry_status: ExpiryStatus | None = None
    days_to_expiry: int | None = None

    @property
    def total_value(self) -> float:
        """quantity * unit_price (0 when the batch has no price)."""
        return self.quantity * (self.unit_price or 0.0)
