"""
Domain exceptions for the stock ledger.

Every error raised by the core is a LedgerError carrying a machine-readable
code and a details dict, so the API layer can render it without knowing the
concrete type.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup Exceptions
class NotFoundError(LedgerError):
    """Base exception for unknown ids."""

    pass


class TransactionNotFoundError(NotFoundError):
    """Ledger entry not found."""

    def __init__(self, transaction_id: int):
        super().__init__(
            f"Inventory transaction not found: {transaction_id}",
            code="TRANSACTION_NOT_FOUND",
            details={"transaction_id": transaction_id},
        )


class PurchaseOrderLineNotFoundError(NotFoundError):
    """Purchase-order line unknown to the procurement lookup."""

    def __init__(self, po_line_id: str):
        super().__init__(
            f"Purchase order line not found: {po_line_id}",
            code="PO_LINE_NOT_FOUND",
            details={"po_line_id": po_line_id},
        )


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class SameWarehouseError(LedgerError):
    """Transfer source and target are the same warehouse."""

    def __init__(self, warehouse_id: str):
        super().__init__(
            f"Transfer source and target warehouse are both {warehouse_id}",
            code="SAME_WAREHOUSE",
            details={"warehouse_id": warehouse_id},
        )


class ExceedsPendingError(LedgerError):
    """Check-in quantity is larger than what is still outstanding on the PO line."""

    def __init__(self, po_line_id: str, requested: int, outstanding: int):
        super().__init__(
            f"Check-in of {requested} exceeds outstanding quantity {outstanding} "
            f"on purchase order line {po_line_id}",
            code="EXCEEDS_PENDING",
            details={
                "po_line_id": po_line_id,
                "requested": requested,
                "outstanding": outstanding,
            },
        )


class AuditRequirementNotMetError(LedgerError):
    """Unlinked movement submitted without a reason code and explanation."""

    def __init__(self, reason: str, min_length: int):
        super().__init__(
            f"Audit requirement not met: {reason}",
            code="AUDIT_REQUIREMENT_NOT_MET",
            details={"reason": reason, "min_explanation_length": min_length},
        )


# Conservation Exceptions
class InsufficientStockError(LedgerError):
    """Decrement would drive an inventory item below zero."""

    def __init__(self, product_id: str, warehouse_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id} in warehouse {warehouse_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "requested": requested,
                "available": available,
            },
        )


# State Machine Exceptions
class InvalidTransitionError(LedgerError):
    """Status is terminal or not the expected source state."""

    def __init__(
        self,
        transaction_id: int,
        field: str,
        current: str,
        target: str,
        message: str | None = None,
    ):
        super().__init__(
            message
            or f"Cannot move {field} of transaction {transaction_id} from '{current}' to '{target}'",
            code="INVALID_TRANSITION",
            details={
                "transaction_id": transaction_id,
                "field": field,
                "current": current,
                "target": target,
            },
        )


class AlreadyDeliveredError(InvalidTransitionError):
    """Delivery was already recorded for this check-out."""

    def __init__(self, transaction_id: int):
        super().__init__(
            transaction_id,
            field="delivery_status",
            current="delivered",
            target="delivered",
            message=f"Delivery already recorded for transaction {transaction_id}",
        )
        self.code = "ALREADY_DELIVERED"


class ConcurrencyConflictError(LedgerError):
    """A compare-and-swap lost a race; retried internally, never surfaced."""

    def __init__(self, resource: str, expected: Any):
        super().__init__(
            f"Concurrent update detected on {resource}",
            code="CONCURRENCY_CONFLICT",
            details={"resource": resource, "expected": expected},
        )


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass
