"""Tests for VerifyBalancesUseCase."""

from unittest.mock import AsyncMock

import pytest

from stockledger.application.use_cases import VerifyBalancesUseCase
from stockledger.core.entities import BalanceCheck


def _check(live: int, replayed: int, product: str = "P1") -> BalanceCheck:
    return BalanceCheck(
        product_id=product, warehouse_id="W1", live_quantity=live, replayed_quantity=replayed
    )


@pytest.fixture
def mock_projector():
    return AsyncMock()


@pytest.fixture
def mock_audit_sink():
    return AsyncMock()


@pytest.fixture
def use_case(mock_projector, mock_audit_sink):
    return VerifyBalancesUseCase(balance_projector=mock_projector, audit_sink=mock_audit_sink)


class TestVerifyBalancesUseCase:
    async def test_verify_all_reports_mismatches(self, use_case, mock_projector):
        mock_projector.verify_all.return_value = [_check(6, 6, "P1"), _check(9, 6, "P2")]

        report = await use_case.verify_all()

        assert report.checked == 2
        assert report.drifted == 1
        assert report.mismatches[0].product_id == "P2"
        assert report.mismatches[0].drift == 3

    async def test_repair_audits_correction(self, use_case, mock_projector, mock_audit_sink):
        mock_projector.repair.return_value = _check(9, 6)

        result = await use_case.repair("P1", "W1", actor_id="auditor")

        assert result.repaired is True
        assert result.quantity == 6
        event = mock_audit_sink.record.await_args[0][0]
        assert event.action == "balance_repaired"
        assert event.entity_type == "inventory_item"
        assert event.entity_id == "P1:W1"
        assert event.actor_id == "auditor"
        assert event.details["drift"] == 3

    async def test_repair_noop_not_audited(self, use_case, mock_projector, mock_audit_sink):
        mock_projector.repair.return_value = _check(6, 6)

        result = await use_case.repair("P1", "W1")

        assert result.repaired is False
        mock_audit_sink.record.assert_not_awaited()
