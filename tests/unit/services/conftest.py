"""Fixtures for service unit tests: mocked store and unit of work."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from stockledger.core.entities import InventoryTransaction


def _assign_id(entry: InventoryTransaction) -> InventoryTransaction:
    return entry.model_copy(update={"id": 1})


@pytest.fixture
def mock_uow():
    uow = AsyncMock()
    uow.append.side_effect = _assign_id
    uow.find_by_idempotency_key.return_value = None
    uow.get.return_value = None
    uow.get_item.return_value = None
    uow.received_for_po_line.return_value = 0
    return uow


@pytest.fixture
def mock_store(mock_uow):
    store = AsyncMock()
    store.find_by_idempotency_key.return_value = None

    @asynccontextmanager
    async def unit_of_work():
        yield mock_uow

    store.unit_of_work = unit_of_work
    return store


@pytest.fixture
def mock_projector():
    return AsyncMock()


@pytest.fixture
def mock_audit_sink():
    return AsyncMock()
