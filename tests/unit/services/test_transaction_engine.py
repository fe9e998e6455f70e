"""Tests for TransactionEngine validation and admission."""

from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities import (
    ApprovalStatus,
    DeliveryStatus,
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.exceptions import (
    AuditRequirementNotMetError,
    ExceedsPendingError,
    SameWarehouseError,
    ValidationError,
)
from stockledger.core.services import ApprovalStateMachine, TransactionEngine


@pytest.fixture
def mock_procurement():
    lookup = AsyncMock()
    lookup.get_outstanding_quantity.return_value = 100
    lookup.get_ordered_quantity.return_value = 100
    return lookup


@pytest.fixture
def mock_actors():
    directory = AsyncMock()
    directory.has_auto_approval_capability.return_value = False
    return directory


@pytest.fixture
def engine(mock_store, mock_projector, mock_procurement, mock_actors, mock_audit_sink):
    machine = ApprovalStateMachine(mock_store, mock_projector, mock_audit_sink)
    return TransactionEngine(
        store=mock_store,
        projector=mock_projector,
        state_machine=machine,
        procurement=mock_procurement,
        actors=mock_actors,
        audit_sink=mock_audit_sink,
        min_explanation_length=10,
    )


class TestCheckInValidation:
    async def test_requires_target(self, engine, make_request, mock_uow):
        with pytest.raises(ValidationError) as exc_info:
            await engine.submit(make_request("check_in", quantity=5))
        assert exc_info.value.details["field"] == "target_warehouse_id"
        mock_uow.append.assert_not_awaited()

    async def test_rejects_source(self, engine, make_request):
        with pytest.raises(ValidationError):
            await engine.submit(
                make_request(
                    "check_in", quantity=5, target_warehouse_id="W1", source_warehouse_id="W2"
                )
            )

    async def test_unlinked_requires_reason_code(self, engine, make_request, mock_uow):
        request = make_request("check_in", quantity=5, target_warehouse_id="W1", reason_code=None)
        with pytest.raises(AuditRequirementNotMetError):
            await engine.submit(request)
        mock_uow.append.assert_not_awaited()

    async def test_unlinked_requires_long_explanation(self, engine, make_request):
        request = make_request(
            "check_in", quantity=5, target_warehouse_id="W1", explanation="  short   "
        )
        with pytest.raises(AuditRequirementNotMetError):
            await engine.submit(request)

    async def test_po_line_exceeding_outstanding(self, engine, make_request, mock_procurement):
        mock_procurement.get_outstanding_quantity.return_value = 4
        request = make_request("check_in", quantity=5, target_warehouse_id="W1", po_line_id="L1")

        with pytest.raises(ExceedsPendingError) as exc_info:
            await engine.submit(request)
        assert exc_info.value.details["outstanding"] == 4

    async def test_po_line_skips_audit_fields(
        self, engine, make_request, mock_procurement, mock_projector
    ):
        mock_procurement.get_outstanding_quantity.return_value = 5
        request = make_request(
            "check_in",
            quantity=5,
            target_warehouse_id="W1",
            po_line_id="L1",
            reason_code=None,
            explanation=None,
        )

        entry = await engine.submit(request)

        assert entry.id == 1
        assert entry.approval_status == ApprovalStatus.APPROVED
        mock_projector.apply.assert_awaited_once()

    async def test_po_line_rechecked_inside_unit_of_work(
        self, engine, make_request, mock_procurement, mock_uow, mock_projector
    ):
        # Another receipt of 7 committed after the outstanding amount was read
        mock_procurement.get_outstanding_quantity.return_value = 10
        mock_procurement.get_ordered_quantity.return_value = 10
        mock_uow.received_for_po_line.return_value = 7
        request = make_request("check_in", quantity=5, target_warehouse_id="W1", po_line_id="L1")

        with pytest.raises(ExceedsPendingError) as exc_info:
            await engine.submit(request)

        assert exc_info.value.details["outstanding"] == 3
        mock_uow.received_for_po_line.assert_awaited_once_with("L1")
        mock_uow.append.assert_not_awaited()
        mock_projector.apply.assert_not_awaited()

    async def test_po_line_without_lookup(self, mock_store, mock_projector, make_request):
        engine = TransactionEngine(
            mock_store, mock_projector, ApprovalStateMachine(mock_store, mock_projector)
        )
        with pytest.raises(ValidationError):
            await engine.submit(
                make_request("check_in", quantity=1, target_warehouse_id="W1", po_line_id="L1")
            )


class TestCheckIn:
    async def test_admitted_approved_and_applied(
        self, engine, make_request, mock_uow, mock_projector
    ):
        entry = await engine.submit(make_request("check_in", quantity=10, target_warehouse_id="W1"))

        assert entry.approval_status == ApprovalStatus.APPROVED
        assert entry.delivery_status == DeliveryStatus.NONE
        mock_uow.append.assert_awaited_once()
        mock_projector.apply.assert_awaited_once_with(mock_uow, entry)

    async def test_audit_event_recorded(self, engine, make_request, mock_audit_sink):
        await engine.submit(make_request("check_in", quantity=10, target_warehouse_id="W1"))

        event = mock_audit_sink.record.await_args[0][0]
        assert event.action == "transaction_admitted"
        assert event.entity_id == "1"
        assert event.details["auto_approved"] is False

    async def test_audit_failure_does_not_propagate(
        self, engine, make_request, mock_audit_sink
    ):
        mock_audit_sink.record.side_effect = RuntimeError("audit table gone")
        entry = await engine.submit(make_request("check_in", quantity=1, target_warehouse_id="W1"))
        assert entry.id == 1


class TestCheckOut:
    async def test_requires_source(self, engine, make_request):
        with pytest.raises(ValidationError):
            await engine.submit(make_request("check_out", quantity=1))

    async def test_rejects_target(self, engine, make_request):
        with pytest.raises(ValidationError):
            await engine.submit(
                make_request(
                    "check_out", quantity=1, source_warehouse_id="W1", target_warehouse_id="W2"
                )
            )

    async def test_unlinked_requires_audit_fields(self, engine, make_request):
        request = make_request(
            "check_out", quantity=1, source_warehouse_id="W1", reason_code=None, explanation=None
        )
        with pytest.raises(AuditRequirementNotMetError):
            await engine.submit(request)

    async def test_linked_request_skips_audit_fields(self, engine, make_request):
        request = make_request(
            "check_out",
            quantity=1,
            source_warehouse_id="W1",
            linked_request_id="REQ-9",
            reason_code=None,
            explanation=None,
        )
        entry = await engine.submit(request)
        assert entry.linked_request_id == "REQ-9"

    async def test_without_capability_waits_for_approval(
        self, engine, make_request, mock_projector, mock_actors
    ):
        entry = await engine.submit(
            make_request("check_out", quantity=4, source_warehouse_id="W1", actor_id="clerk")
        )

        mock_actors.has_auto_approval_capability.assert_awaited_once_with("clerk")
        assert entry.approval_status == ApprovalStatus.PENDING
        assert entry.delivery_status == DeliveryStatus.PENDING
        assert entry.approved_by is None
        mock_projector.apply.assert_not_awaited()

    async def test_auto_approved_with_capability(
        self, engine, make_request, mock_projector, mock_actors, mock_audit_sink
    ):
        mock_actors.has_auto_approval_capability.return_value = True

        entry = await engine.submit(
            make_request("check_out", quantity=4, source_warehouse_id="W1", actor_id="manager")
        )

        assert entry.approval_status == ApprovalStatus.APPROVED
        assert entry.approved_by == "manager"
        assert entry.decided_at is not None
        assert entry.delivery_status == DeliveryStatus.PENDING
        mock_projector.apply.assert_awaited_once()
        assert mock_audit_sink.record.await_args[0][0].details["auto_approved"] is True

    async def test_anonymous_never_auto_approved(self, engine, make_request, mock_actors):
        entry = await engine.submit(make_request("check_out", quantity=1, source_warehouse_id="W1"))
        assert entry.approval_status == ApprovalStatus.PENDING
        mock_actors.has_auto_approval_capability.assert_not_awaited()


class TestTransfer:
    async def test_requires_both_warehouses(self, engine, make_request):
        with pytest.raises(ValidationError):
            await engine.submit(make_request("transfer", quantity=1, source_warehouse_id="W1"))
        with pytest.raises(ValidationError):
            await engine.submit(make_request("transfer", quantity=1, target_warehouse_id="W1"))

    async def test_same_warehouse(self, engine, make_request, mock_uow):
        with pytest.raises(SameWarehouseError):
            await engine.submit(
                make_request(
                    "transfer", quantity=1, source_warehouse_id="W1", target_warehouse_id="W1"
                )
            )
        mock_uow.append.assert_not_awaited()

    async def test_applied_immediately(self, engine, make_request, mock_projector):
        entry = await engine.submit(
            make_request("transfer", quantity=6, source_warehouse_id="W1", target_warehouse_id="W2")
        )
        assert entry.type == TransactionType.TRANSFER
        assert entry.approval_status == ApprovalStatus.APPROVED
        mock_projector.apply.assert_awaited_once()


class TestIdempotency:
    def _stored(self) -> InventoryTransaction:
        return InventoryTransaction(
            id=77,
            type=TransactionType.CHECK_IN,
            product_id="P1",
            target_warehouse_id="W1",
            quantity=10,
            idempotency_key="k1",
        )

    async def test_replay_returns_stored_entry(
        self, engine, make_request, mock_store, mock_uow, mock_projector
    ):
        mock_store.find_by_idempotency_key.return_value = self._stored()

        entry = await engine.submit(
            make_request("check_in", quantity=10, target_warehouse_id="W1", idempotency_key="k1")
        )

        assert entry.id == 77
        mock_uow.append.assert_not_awaited()
        mock_projector.apply.assert_not_awaited()

    async def test_replay_detected_inside_unit_of_work(
        self, engine, make_request, mock_uow, mock_projector
    ):
        mock_uow.find_by_idempotency_key.return_value = self._stored()

        entry = await engine.submit(
            make_request("check_in", quantity=10, target_warehouse_id="W1", idempotency_key="k1")
        )

        assert entry.id == 77
        mock_uow.append.assert_not_awaited()
        mock_projector.apply.assert_not_awaited()

    async def test_replay_skips_validation(self, engine, make_request, mock_store):
        mock_store.find_by_idempotency_key.return_value = self._stored()
        # Would fail the audit rule if it were validated again
        request = make_request(
            "check_in",
            quantity=10,
            target_warehouse_id="W1",
            reason_code=None,
            idempotency_key="k1",
        )
        assert (await engine.submit(request)).id == 77
