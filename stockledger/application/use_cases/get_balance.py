"""Get Balance Use Case: live quantities per (product, warehouse)."""

from stockledger.application.dto.responses import BalanceResponse, InventoryStatusResponse
from stockledger.application.use_cases.mappers import item_to_response
from stockledger.config import get_logger
from stockledger.core.interfaces import ILedgerStore

logger = get_logger(__name__)


class GetBalanceUseCase:
    """Read live balances from the inventory aggregates."""

    def __init__(self, ledger_store: ILedgerStore | None = None):
        self._ledger_store = ledger_store

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def execute(self, product_id: str, warehouse_id: str) -> BalanceResponse:
        """Balance of one pair; a pair never touched has quantity 0."""
        store = await self._get_ledger_store()
        item = await store.get_item(product_id, warehouse_id)
        if item is None:
            return BalanceResponse(product_id=product_id, warehouse_id=warehouse_id, quantity=0)
        return item_to_response(item)

    async def list_balances(
        self,
        warehouse_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> InventoryStatusResponse:
        store = await self._get_ledger_store()
        items = await store.list_items(warehouse_id=warehouse_id, limit=limit, offset=offset)
        return InventoryStatusResponse(
            items=[item_to_response(i) for i in items],
            total=len(items),
        )
