"""Best-effort audit recording shared by the engine and the state machine."""

from typing import Any

from stockledger.config import get_logger
from stockledger.core.entities.audit import AuditEvent
from stockledger.core.entities.transaction import InventoryTransaction
from stockledger.core.interfaces.collaborators import IAuditSink

logger = get_logger(__name__)


def transaction_event(
    action: str,
    entry: InventoryTransaction,
    actor_id: str | None = None,
    **extra: Any,
) -> AuditEvent:
    """Build the audit event for a ledger entry."""
    details: dict[str, Any] = {
        "type": entry.type.value,
        "product_id": entry.product_id,
        "quantity": entry.quantity,
        "source_warehouse_id": entry.source_warehouse_id,
        "target_warehouse_id": entry.target_warehouse_id,
        "approval_status": entry.approval_status.value,
        "delivery_status": entry.delivery_status.value,
    }
    details.update(extra)
    return AuditEvent(
        action=action,
        entity_id=str(entry.id),
        actor_id=actor_id or entry.actor_id,
        details=details,
    )


async def record_audit(sink: IAuditSink | None, event: AuditEvent) -> None:
    """Write an audit event; failures are logged and never propagate."""
    if sink is None:
        return
    try:
        await sink.record(event)
    except Exception as e:
        logger.warning(
            "audit_write_failed",
            action=event.action,
            entity_id=event.entity_id,
            error=str(e),
            error_type=type(e).__name__,
        )
