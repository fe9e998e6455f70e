"""
Service factory functions for dependency injection.

This module wires the SQLite infrastructure to the core ledger services.
Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from stockledger.config import get_settings
from stockledger.core.services import (
    ApprovalStateMachine,
    BalanceProjector,
    BatchProjector,
    TransactionEngine,
)

if TYPE_CHECKING:
    from stockledger.core.interfaces import (
        IActorDirectory,
        IAuditSink,
        ILedgerStore,
        IProcurementLookup,
    )


# Singleton service instances
_balance_projector: BalanceProjector | None = None
_batch_projector: BatchProjector | None = None
_state_machine: ApprovalStateMachine | None = None
_transaction_engine: TransactionEngine | None = None


async def _default_store() -> "ILedgerStore":
    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import get_ledger_store

    return await get_ledger_store()


async def _default_audit_sink() -> "IAuditSink":
    from stockledger.infrastructure.storage.sqlite import get_audit_sink

    return await get_audit_sink()


async def get_balance_projector(
    ledger_store: "ILedgerStore | None" = None,
) -> BalanceProjector:
    """
    Get or create BalanceProjector instance.

    Args:
        ledger_store: Optional ledger store override (not cached)
    """
    global _balance_projector

    if _balance_projector is not None and ledger_store is None:
        return _balance_projector

    settings = get_settings()
    projector = BalanceProjector(
        store=ledger_store or await _default_store(),
        cas_max_retries=settings.ledger.cas_max_retries,
    )

    if ledger_store is None:
        _balance_projector = projector
    return projector


async def get_batch_projector(
    ledger_store: "ILedgerStore | None" = None,
) -> BatchProjector:
    """Get or create BatchProjector instance."""
    global _batch_projector

    if _batch_projector is not None and ledger_store is None:
        return _batch_projector

    settings = get_settings()
    projector = BatchProjector(
        store=ledger_store or await _default_store(),
        expiring_soon_days=settings.ledger.expiring_soon_days,
        unbatched_label=settings.ledger.unbatched_label,
    )

    if ledger_store is None:
        _batch_projector = projector
    return projector


async def get_state_machine(
    ledger_store: "ILedgerStore | None" = None,
    audit_sink: "IAuditSink | None" = None,
) -> ApprovalStateMachine:
    """Get or create ApprovalStateMachine instance."""
    global _state_machine

    overridden = ledger_store is not None or audit_sink is not None
    if _state_machine is not None and not overridden:
        return _state_machine

    store = ledger_store or await _default_store()
    machine = ApprovalStateMachine(
        store=store,
        projector=await get_balance_projector(ledger_store),
        audit_sink=audit_sink or await _default_audit_sink(),
    )

    if not overridden:
        _state_machine = machine
    return machine


async def get_transaction_engine(
    ledger_store: "ILedgerStore | None" = None,
    procurement: "IProcurementLookup | None" = None,
    actors: "IActorDirectory | None" = None,
    audit_sink: "IAuditSink | None" = None,
) -> TransactionEngine:
    """
    Get or create TransactionEngine instance.

    Creates infrastructure dependencies if not provided. Instances built
    with overrides are not cached.
    """
    global _transaction_engine

    overridden = any(d is not None for d in (ledger_store, procurement, actors, audit_sink))
    if _transaction_engine is not None and not overridden:
        return _transaction_engine

    from stockledger.infrastructure.storage.sqlite import (
        get_actor_directory,
        get_procurement_lookup,
    )

    settings = get_settings()
    store = ledger_store or await _default_store()
    sink = audit_sink or await _default_audit_sink()
    engine = TransactionEngine(
        store=store,
        projector=await get_balance_projector(ledger_store),
        state_machine=await get_state_machine(ledger_store, audit_sink),
        procurement=procurement or await get_procurement_lookup(),
        actors=actors or await get_actor_directory(),
        audit_sink=sink,
        min_explanation_length=settings.ledger.min_explanation_length,
    )

    if not overridden:
        _transaction_engine = engine
    return engine


def reset_services() -> None:
    """Reset all service singletons (for testing)."""
    global _balance_projector, _batch_projector, _state_machine, _transaction_engine
    _balance_projector = None
    _batch_projector = None
    _state_machine = None
    _transaction_engine = None
