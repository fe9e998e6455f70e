"""Unit tests for domain exceptions."""

from stockledger.core.exceptions import (
    AlreadyDeliveredError,
    AuditRequirementNotMetError,
    ConcurrencyConflictError,
    DatabaseError,
    ExceedsPendingError,
    InsufficientStockError,
    InvalidTransitionError,
    LedgerError,
    NotFoundError,
    PurchaseOrderLineNotFoundError,
    SameWarehouseError,
    StorageError,
    TransactionNotFoundError,
    ValidationError,
)


class TestLedgerError:
    """Tests for base LedgerError exception."""

    def test_basic_initialization(self):
        error = LedgerError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "LedgerError"
        assert error.details == {}

    def test_to_dict(self):
        error = LedgerError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }


class TestLookupErrors:
    def test_transaction_not_found(self):
        error = TransactionNotFoundError(42)
        assert isinstance(error, NotFoundError)
        assert error.code == "TRANSACTION_NOT_FOUND"
        assert error.details["transaction_id"] == 42

    def test_po_line_not_found(self):
        error = PurchaseOrderLineNotFoundError("PO-1/1")
        assert isinstance(error, NotFoundError)
        assert "PO-1/1" in str(error)


class TestValidationErrors:
    def test_validation_error_truncates_value(self):
        error = ValidationError("field", "bad", "x" * 500)
        assert len(error.details["value"]) == 100

    def test_same_warehouse(self):
        error = SameWarehouseError("W1")
        assert error.code == "SAME_WAREHOUSE"
        assert error.details == {"warehouse_id": "W1"}

    def test_exceeds_pending(self):
        error = ExceedsPendingError("L1", requested=5, outstanding=4)
        assert error.code == "EXCEEDS_PENDING"
        assert error.details["requested"] == 5
        assert error.details["outstanding"] == 4

    def test_audit_requirement(self):
        error = AuditRequirementNotMetError("missing reason", 10)
        assert error.details["min_explanation_length"] == 10


class TestConservationErrors:
    def test_insufficient_stock(self):
        error = InsufficientStockError("P1", "W1", requested=10, available=6)
        assert error.code == "INSUFFICIENT_STOCK"
        assert error.details["available"] == 6
        assert "requested 10" in str(error)

    def test_concurrency_conflict(self):
        error = ConcurrencyConflictError("inventory_item:P1:W1", 6)
        assert error.details == {"resource": "inventory_item:P1:W1", "expected": 6}


class TestTransitionErrors:
    def test_invalid_transition(self):
        error = InvalidTransitionError(7, "approval_status", "rejected", "approved")
        assert error.code == "INVALID_TRANSITION"
        assert "rejected" in str(error)

    def test_already_delivered_is_invalid_transition(self):
        error = AlreadyDeliveredError(7)
        assert isinstance(error, InvalidTransitionError)
        assert error.code == "ALREADY_DELIVERED"
        assert error.details["current"] == "delivered"


class TestStorageErrors:
    def test_database_error(self):
        error = DatabaseError("begin_transaction", "database is locked")
        assert isinstance(error, StorageError)
        assert error.details["operation"] == "begin_transaction"
