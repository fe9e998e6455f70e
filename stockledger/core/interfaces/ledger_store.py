"""Abstract interface for ledger storage."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from stockledger.core.entities.inventory import InventoryItem
from stockledger.core.entities.transaction import (
    ApprovalStatus,
    DeliveryDetails,
    DeliveryStatus,
    InventoryTransaction,
    TransactionType,
)


class ILedgerUnitOfWork(ABC):
    """
    Writes made inside one atomic unit.

    Everything done through a unit of work commits together when the
    surrounding context exits cleanly and is rolled back if it raises.
    """

    @abstractmethod
    async def append(self, entry: InventoryTransaction) -> InventoryTransaction:
        """Append a new ledger entry and return it with its id."""
        pass

    @abstractmethod
    async def get(self, transaction_id: int) -> InventoryTransaction | None:
        """Read an entry inside the unit."""
        pass

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> InventoryTransaction | None:
        """Read the entry admitted under an idempotency key inside the unit."""
        pass

    @abstractmethod
    async def list_by_product_warehouse(
        self,
        product_id: str,
        warehouse_id: str,
        approved_only: bool = False,
    ) -> list[InventoryTransaction]:
        """Entries naming the pair, oldest first, as seen inside the unit."""
        pass

    @abstractmethod
    async def received_for_po_line(self, po_line_id: str) -> int:
        """Sum of approved check-ins linked to a purchase-order line, inside the unit."""
        pass

    @abstractmethod
    async def set_approval_status(
        self,
        transaction_id: int,
        expected: ApprovalStatus,
        new: ApprovalStatus,
        actor_id: str | None = None,
        notes: str | None = None,
    ) -> InventoryTransaction:
        """
        Conditionally move approval_status from `expected` to `new`.

        Raises TransactionNotFoundError for unknown ids and
        InvalidTransitionError when the current status is not `expected`.
        """
        pass

    @abstractmethod
    async def set_delivery_status(
        self,
        transaction_id: int,
        expected: tuple[DeliveryStatus, ...],
        new: DeliveryStatus,
        details: DeliveryDetails | None,
    ) -> InventoryTransaction:
        """
        Conditionally move delivery_status from one of `expected` to `new`.

        Raises TransactionNotFoundError for unknown ids and
        InvalidTransitionError when the current status is not in `expected`.
        """
        pass

    @abstractmethod
    async def get_item(self, product_id: str, warehouse_id: str) -> InventoryItem | None:
        """Read the aggregate for a pair inside the unit."""
        pass

    @abstractmethod
    async def ensure_item(self, product_id: str, warehouse_id: str) -> InventoryItem:
        """Return the aggregate for a pair, creating it at quantity 0 if absent."""
        pass

    @abstractmethod
    async def compare_and_set_quantity(
        self,
        product_id: str,
        warehouse_id: str,
        expected: int,
        new: int,
    ) -> bool:
        """Set quantity to `new` only if it currently equals `expected`."""
        pass


class ILedgerStore(ABC):
    """Interface for the append-only ledger and its balance aggregates."""

    @abstractmethod
    def unit_of_work(self) -> AbstractAsyncContextManager[ILedgerUnitOfWork]:
        """Open an atomic, serialized unit of work."""
        pass

    @abstractmethod
    async def get(self, transaction_id: int) -> InventoryTransaction | None:
        """Get a ledger entry by id."""
        pass

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> InventoryTransaction | None:
        """Get the entry admitted under an idempotency key, if any."""
        pass

    @abstractmethod
    async def list_by_product_warehouse(
        self,
        product_id: str,
        warehouse_id: str,
        approved_only: bool = False,
    ) -> list[InventoryTransaction]:
        """Entries naming the pair as source or target, oldest first."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        product_id: str | None = None,
        warehouse_id: str | None = None,
        transaction_type: TransactionType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryTransaction]:
        """Filtered transaction history, newest first."""
        pass

    @abstractmethod
    async def list_pending_approval(
        self, limit: int = 100, offset: int = 0
    ) -> list[InventoryTransaction]:
        """Check-outs awaiting an approval decision, oldest first."""
        pass

    @abstractmethod
    async def list_pending_delivery(
        self, limit: int = 100, offset: int = 0
    ) -> list[InventoryTransaction]:
        """Approved check-outs whose delivery is not yet recorded, oldest first."""
        pass

    @abstractmethod
    async def list_warehouses_for_product(self, product_id: str) -> list[str]:
        """Every warehouse the product's entries name as source or target."""
        pass

    @abstractmethod
    async def get_item(self, product_id: str, warehouse_id: str) -> InventoryItem | None:
        """Get the live aggregate for a pair."""
        pass

    @abstractmethod
    async def list_items(
        self,
        warehouse_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """List aggregates, optionally for one warehouse."""
        pass
