"""Tests for ledger entry entities."""

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from stockledger.core.entities import (
    ApprovalStatus,
    DeliveryDetails,
    DeliveryStatus,
    InventoryTransaction,
    TransactionRequest,
    TransactionType,
)


class TestInventoryTransaction:
    """Tests for InventoryTransaction entity."""

    def test_defaults(self):
        entry = InventoryTransaction(
            type=TransactionType.CHECK_IN,
            product_id="P1",
            target_warehouse_id="W1",
            quantity=5,
        )
        assert entry.id is None
        assert entry.approval_status == ApprovalStatus.APPROVED
        assert entry.delivery_status == DeliveryStatus.NONE
        assert entry.delivery_details is None
        assert entry.batch_number is None
        assert entry.expiry_date is None

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError):
            InventoryTransaction(
                type=TransactionType.CHECK_IN,
                product_id="P1",
                target_warehouse_id="W1",
                quantity=quantity,
            )

    def test_check_in_deltas(self):
        entry = InventoryTransaction(
            type=TransactionType.CHECK_IN, product_id="P1", target_warehouse_id="W1", quantity=10
        )
        assert entry.quantity_deltas() == [("W1", 10)]

    def test_check_out_deltas(self):
        entry = InventoryTransaction(
            type=TransactionType.CHECK_OUT, product_id="P1", source_warehouse_id="W1", quantity=4
        )
        assert entry.quantity_deltas() == [("W1", -4)]

    def test_transfer_decrements_source_first(self):
        entry = InventoryTransaction(
            type=TransactionType.TRANSFER,
            product_id="P1",
            source_warehouse_id="W1",
            target_warehouse_id="W2",
            quantity=6,
        )
        assert entry.quantity_deltas() == [("W1", -6), ("W2", 6)]

    def test_delta_for(self):
        entry = InventoryTransaction(
            type=TransactionType.TRANSFER,
            product_id="P1",
            source_warehouse_id="W1",
            target_warehouse_id="W2",
            quantity=6,
        )
        assert entry.delta_for("W1") == -6
        assert entry.delta_for("W2") == 6
        assert entry.delta_for("W3") == 0

    def test_batch_properties_read_delivery_details(self):
        entry = InventoryTransaction(
            type=TransactionType.CHECK_IN,
            product_id="P1",
            target_warehouse_id="W1",
            quantity=1,
            delivery_details=DeliveryDetails(batch_number="B100", expiry_date=date(2026, 3, 1)),
        )
        assert entry.batch_number == "B100"
        assert entry.expiry_date == date(2026, 3, 1)

    def test_empty_batch_number_is_unbatched(self):
        entry = InventoryTransaction(
            type=TransactionType.CHECK_IN,
            product_id="P1",
            target_warehouse_id="W1",
            quantity=1,
            delivery_details=DeliveryDetails(batch_number=""),
        )
        assert entry.batch_number is None


class TestApprovalStatus:
    def test_terminal_states(self):
        assert not ApprovalStatus.PENDING.is_terminal
        assert ApprovalStatus.APPROVED.is_terminal
        assert ApprovalStatus.REJECTED.is_terminal


class TestDeliveryDetails:
    """Tests for DeliveryDetails merge semantics."""

    def test_merge_overlays_non_null_fields(self):
        stored = DeliveryDetails(batch_number="B1", recipient_name="Alice")
        update = DeliveryDetails(recipient_department="Ops")

        merged = stored.merged_with(update)

        assert merged.batch_number == "B1"
        assert merged.recipient_name == "Alice"
        assert merged.recipient_department == "Ops"

    def test_merge_new_value_wins(self):
        stored = DeliveryDetails(recipient_name="Alice")
        merged = stored.merged_with(DeliveryDetails(recipient_name="Bob"))
        assert merged.recipient_name == "Bob"

    def test_merge_does_not_mutate(self):
        stored = DeliveryDetails(batch_number="B1")
        stored.merged_with(
            DeliveryDetails(batch_number="B2", delivered_at=datetime.now(UTC))
        )
        assert stored.batch_number == "B1"
        assert stored.delivered_at is None


class TestTransactionRequest:
    def test_to_entry_copies_fields(self):
        request = TransactionRequest(
            type=TransactionType.CHECK_OUT,
            product_id="P1",
            source_warehouse_id="W1",
            quantity=3,
            actor_id="u1",
            linked_request_id="REQ-1",
            idempotency_key="k1",
        )
        entry = request.to_entry()

        assert entry.type == TransactionType.CHECK_OUT
        assert entry.source_warehouse_id == "W1"
        assert entry.quantity == 3
        assert entry.actor_id == "u1"
        assert entry.linked_request_id == "REQ-1"
        assert entry.idempotency_key == "k1"
        assert entry.id is None

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValidationError):
            TransactionRequest(type=TransactionType.CHECK_IN, product_id="P1", quantity=0)
