"""Tests for the check-out lifecycle use cases."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from stockledger.application.dto.requests import (
    ApproveTransactionRequest,
    RecordDeliveryRequest,
    RejectTransactionRequest,
)
from stockledger.application.use_cases import (
    ApproveCheckoutUseCase,
    RecordDeliveryUseCase,
    RejectCheckoutUseCase,
)
from stockledger.core.entities import DeliveryDetails


@pytest.fixture
def mock_machine():
    return AsyncMock()


async def test_approve_passes_actor(mock_machine):
    use_case = ApproveCheckoutUseCase(state_machine=mock_machine)

    await use_case.execute(5, ApproveTransactionRequest(actor_id="boss"))

    mock_machine.approve.assert_awaited_once_with(5, actor_id="boss")


async def test_reject_passes_notes(mock_machine):
    use_case = RejectCheckoutUseCase(state_machine=mock_machine)

    await use_case.execute(5, RejectTransactionRequest(notes="duplicate", actor_id="boss"))

    mock_machine.reject.assert_awaited_once_with(5, notes="duplicate", actor_id="boss")


async def test_record_delivery_builds_details(mock_machine):
    use_case = RecordDeliveryUseCase(state_machine=mock_machine)
    request = RecordDeliveryRequest(
        batch_number="B1",
        expiry_date=date(2026, 2, 1),
        recipient_name="Alice",
        recipient_department="Lab",
        actor_id="storekeeper",
    )

    await use_case.execute(5, request)

    args = mock_machine.record_delivery.await_args
    assert args[0][0] == 5
    details = args[0][1]
    assert isinstance(details, DeliveryDetails)
    assert details.recipient_name == "Alice"
    assert details.delivered_at is None
    assert args.kwargs["actor_id"] == "storekeeper"
