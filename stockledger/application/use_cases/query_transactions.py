"""Transaction query use cases: lookup, history and work queues."""

from stockledger.application.dto.responses import TransactionListResponse
from stockledger.application.use_cases.mappers import transaction_to_response
from stockledger.config import get_logger
from stockledger.core.entities import InventoryTransaction, TransactionType
from stockledger.core.exceptions import TransactionNotFoundError
from stockledger.core.interfaces import ILedgerStore

logger = get_logger(__name__)


class QueryTransactionsUseCase:
    """Read-only access to the ledger."""

    def __init__(self, ledger_store: ILedgerStore | None = None):
        self._ledger_store = ledger_store

    async def _get_ledger_store(self) -> ILedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def get(self, transaction_id: int) -> InventoryTransaction:
        store = await self._get_ledger_store()
        entry = await store.get(transaction_id)
        if entry is None:
            raise TransactionNotFoundError(transaction_id)
        return entry

    async def history(
        self,
        product_id: str | None = None,
        warehouse_id: str | None = None,
        transaction_type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> TransactionListResponse:
        """Newest-first history, optionally filtered."""
        store = await self._get_ledger_store()
        # Fetch one extra row to know whether another page exists
        entries = await store.list_transactions(
            product_id=product_id,
            warehouse_id=warehouse_id,
            transaction_type=TransactionType(transaction_type) if transaction_type else None,
            limit=limit + 1,
            offset=offset,
        )
        return self._page(entries, limit, offset)

    async def pending_approval(self, limit: int = 50, offset: int = 0) -> TransactionListResponse:
        store = await self._get_ledger_store()
        entries = await store.list_pending_approval(limit=limit + 1, offset=offset)
        return self._page(entries, limit, offset)

    async def pending_delivery(self, limit: int = 50, offset: int = 0) -> TransactionListResponse:
        store = await self._get_ledger_store()
        entries = await store.list_pending_delivery(limit=limit + 1, offset=offset)
        return self._page(entries, limit, offset)

    @staticmethod
    def _page(
        entries: list[InventoryTransaction], limit: int, offset: int
    ) -> TransactionListResponse:
        has_more = len(entries) > limit
        items = entries[:limit]
        return TransactionListResponse(
            items=[transaction_to_response(e) for e in items],
            total=offset + len(items),
            limit=limit,
            offset=offset,
            has_more=has_more,
        )
