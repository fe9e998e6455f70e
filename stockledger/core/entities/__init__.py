"""Core domain entities."""

from stockledger.core.entities.audit import AuditEvent
from stockledger.core.entities.batch import BatchBalance, ExpiryStatus, classify_expiry
from stockledger.core.entities.inventory import BalanceCheck, InventoryItem
from stockledger.core.entities.request import TransactionRequest
from stockledger.core.entities.transaction import (
    ApprovalStatus,
    DeliveryDetails,
    DeliveryStatus,
    InventoryTransaction,
    TransactionType,
)

__all__ = [
    # Ledger entities
    "InventoryTransaction",
    "TransactionType",
    "ApprovalStatus",
    "DeliveryStatus",
    "DeliveryDetails",
    "TransactionRequest",
    # Aggregate entities
    "InventoryItem",
    "BalanceCheck",
    # Batch entities
    "BatchBalance",
    "ExpiryStatus",
    "classify_expiry",
    # Audit entities
    "AuditEvent",
]
