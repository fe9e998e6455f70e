"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.collaborators import (
    IActorDirectory,
    IAuditSink,
    IProcurementLookup,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore, ILedgerUnitOfWork

__all__ = [
    # Storage interfaces
    "ILedgerStore",
    "ILedgerUnitOfWork",
    # Collaborator interfaces
    "IProcurementLookup",
    "IActorDirectory",
    "IAuditSink",
]
