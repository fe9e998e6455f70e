"""Audit log entity."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditEvent(BaseModel):
    """Write-once record of an admitted or transitioned ledger entry."""

    id: int | None = None
    action: str  # e.g. "transaction_admitted", "checkout_approved"
    entity_type: str = "inventory_transaction"
    entity_id: str
    actor_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
