"""Entity to response DTO conversions shared by the use cases."""

from stockledger.application.dto.responses import (
    BalanceCheckResponse,
    BalanceResponse,
    BatchResponse,
    DeliveryDetailsResponse,
    TransactionResponse,
)
from stockledger.core.entities import (
    BalanceCheck,
    BatchBalance,
    InventoryItem,
    InventoryTransaction,
)


def transaction_to_response(entry: InventoryTransaction) -> TransactionResponse:
    details = entry.delivery_details
    return TransactionResponse(
        id=entry.id,  # type: ignore[arg-type]
        type=entry.type.value,
        product_id=entry.product_id,
        source_warehouse_id=entry.source_warehouse_id,
        target_warehouse_id=entry.target_warehouse_id,
        quantity=entry.quantity,
        unit_price=entry.unit_price,
        currency=entry.currency,
        reference=entry.reference,
        notes=entry.notes,
        reason_code=entry.reason_code,
        explanation=entry.explanation,
        actor_id=entry.actor_id,
        approval_status=entry.approval_status.value,
        approved_by=entry.approved_by,
        approval_notes=entry.approval_notes,
        decided_at=entry.decided_at,
        delivery_status=entry.delivery_status.value,
        delivery_details=(
            DeliveryDetailsResponse(**details.model_dump()) if details else None
        ),
        linked_request_id=entry.linked_request_id,
        po_line_id=entry.po_line_id,
        idempotency_key=entry.idempotency_key,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def item_to_response(item: InventoryItem) -> BalanceResponse:
    return BalanceResponse(
        product_id=item.product_id,
        warehouse_id=item.warehouse_id,
        quantity=item.quantity,
        last_updated=item.last_updated,
    )


def batch_to_response(batch: BatchBalance) -> BatchResponse:
    return BatchResponse(
        product_id=batch.product_id,
        warehouse_id=batch.warehouse_id,
        batch_number=batch.batch_number,
        quantity=batch.quantity,
        expiry_date=batch.expiry_date,
        expiry_status=batch.expiry_status.value if batch.expiry_status else None,
        days_to_expiry=batch.days_to_expiry,
        unit_price=batch.unit_price,
        total_value=batch.total_value,
    )


def check_to_response(check: BalanceCheck) -> BalanceCheckResponse:
    return BalanceCheckResponse(
        product_id=check.product_id,
        warehouse_id=check.warehouse_id,
        live_quantity=check.live_quantity,
        replayed_quantity=check.replayed_quantity,
        consistent=check.consistent,
        drift=check.drift,
    )
