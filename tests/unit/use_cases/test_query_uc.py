"""Tests for the read-side use cases."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from stockledger.application.use_cases import (
    GetBalanceUseCase,
    GetBatchesUseCase,
    QueryTransactionsUseCase,
)
from stockledger.core.entities import (
    BatchBalance,
    InventoryItem,
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.exceptions import TransactionNotFoundError


def _entries(count: int) -> list[InventoryTransaction]:
    return [
        InventoryTransaction(
            id=i,
            type=TransactionType.CHECK_IN,
            product_id="P1",
            target_warehouse_id="W1",
            quantity=1,
        )
        for i in range(1, count + 1)
    ]


@pytest.fixture
def mock_store():
    return AsyncMock()


class TestQueryTransactionsUseCase:
    async def test_get_missing(self, mock_store):
        mock_store.get.return_value = None
        with pytest.raises(TransactionNotFoundError):
            await QueryTransactionsUseCase(mock_store).get(1)

    async def test_history_has_more(self, mock_store):
        mock_store.list_transactions.return_value = _entries(3)

        page = await QueryTransactionsUseCase(mock_store).history(
            product_id="P1", transaction_type="check_in", limit=2
        )

        assert page.has_more is True
        assert len(page.items) == 2
        kwargs = mock_store.list_transactions.await_args.kwargs
        assert kwargs["limit"] == 3
        assert kwargs["transaction_type"] == TransactionType.CHECK_IN

    async def test_pending_approval_last_page(self, mock_store):
        mock_store.list_pending_approval.return_value = _entries(1)

        page = await QueryTransactionsUseCase(mock_store).pending_approval(limit=5, offset=10)

        assert page.has_more is False
        assert page.total == 11
        assert page.offset == 10


class TestGetBalanceUseCase:
    async def test_unknown_pair_is_zero(self, mock_store):
        mock_store.get_item.return_value = None

        balance = await GetBalanceUseCase(mock_store).execute("P1", "W9")

        assert balance.quantity == 0
        assert balance.last_updated is None

    async def test_known_pair(self, mock_store):
        mock_store.get_item.return_value = InventoryItem(
            product_id="P1", warehouse_id="W1", quantity=6
        )
        assert (await GetBalanceUseCase(mock_store).execute("P1", "W1")).quantity == 6

    async def test_list_balances(self, mock_store):
        mock_store.list_items.return_value = [
            InventoryItem(product_id="P1", warehouse_id="W1", quantity=6),
            InventoryItem(product_id="P2", warehouse_id="W1", quantity=1),
        ]

        status = await GetBalanceUseCase(mock_store).list_balances(warehouse_id="W1")

        assert status.total == 2
        mock_store.list_items.assert_awaited_once_with(warehouse_id="W1", limit=100, offset=0)


class TestGetBatchesUseCase:
    async def test_totals(self):
        projector = AsyncMock()
        projector.project_batches.return_value = [
            BatchBalance(
                product_id="P1", warehouse_id="W1", batch_number="B1", quantity=4, unit_price=2.5
            ),
            BatchBalance(product_id="P1", warehouse_id="W1", batch_number="No Batch", quantity=3),
        ]

        result = await GetBatchesUseCase(projector).execute("P1", "W1", today=date(2026, 1, 1))

        assert result.total_quantity == 7
        assert result.total_value == 10.0
        assert [b.batch_number for b in result.batches] == ["B1", "No Batch"]

    async def test_all_warehouses(self):
        projector = AsyncMock()
        projector.project_product_batches.return_value = []

        result = await GetBatchesUseCase(projector).execute("P1")

        assert result.warehouse_id is None
        projector.project_product_batches.assert_awaited_once_with("P1", None)
