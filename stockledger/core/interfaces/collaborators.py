"""Ports for the collaborators the ledger consults but does not own."""

from abc import ABC, abstractmethod

from stockledger.core.entities.audit import AuditEvent


class IProcurementLookup(ABC):
    """Purchase-order information used by check-in validation."""

    @abstractmethod
    async def get_ordered_quantity(self, po_line_id: str) -> int:
        """
        Quantity ordered on a PO line.

        Raises PurchaseOrderLineNotFoundError for unknown lines.
        """
        pass

    @abstractmethod
    async def get_outstanding_quantity(self, po_line_id: str) -> int:
        """
        Ordered minus already-received quantity for a PO line.

        Raises PurchaseOrderLineNotFoundError for unknown lines.
        """
        pass


class IActorDirectory(ABC):
    """Role/capability lookup for submitting actors."""

    @abstractmethod
    async def has_auto_approval_capability(self, actor_id: str) -> bool:
        """True if check-outs by this actor skip the approval queue."""
        pass


class IAuditSink(ABC):
    """Best-effort, write-once audit trail."""

    @abstractmethod
    async def record(self, event: AuditEvent) -> None:
        """Persist one audit event."""
        pass
