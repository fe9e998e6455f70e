"""Verify Balances Use Case: compare live balances with ledger replay and repair drift."""

from stockledger.application.dto.responses import (
    BalanceCheckResponse,
    RepairResponse,
    VerifyAllResponse,
)
from stockledger.application.use_cases.mappers import check_to_response
from stockledger.config import get_logger
from stockledger.core.entities import AuditEvent
from stockledger.core.interfaces import IAuditSink
from stockledger.core.services import BalanceProjector, record_audit

logger = get_logger(__name__)


class VerifyBalancesUseCase:
    """Replay-based verification and repair of inventory aggregates."""

    def __init__(
        self,
        balance_projector: BalanceProjector | None = None,
        audit_sink: IAuditSink | None = None,
    ):
        self._balance_projector = balance_projector
        self._audit_sink = audit_sink

    async def _get_balance_projector(self) -> BalanceProjector:
        if self._balance_projector is None:
            from stockledger.application.services import get_balance_projector

            self._balance_projector = await get_balance_projector()
        return self._balance_projector

    async def _get_audit_sink(self) -> IAuditSink:
        if self._audit_sink is None:
            from stockledger.infrastructure.storage.sqlite import get_audit_sink

            self._audit_sink = await get_audit_sink()
        return self._audit_sink

    async def verify(self, product_id: str, warehouse_id: str) -> BalanceCheckResponse:
        projector = await self._get_balance_projector()
        return check_to_response(await projector.verify(product_id, warehouse_id))

    async def verify_all(self) -> VerifyAllResponse:
        projector = await self._get_balance_projector()
        checks = await projector.verify_all()
        mismatches = [check_to_response(c) for c in checks if not c.consistent]
        return VerifyAllResponse(
            checked=len(checks),
            drifted=len(mismatches),
            mismatches=mismatches,
        )

    async def repair(
        self,
        product_id: str,
        warehouse_id: str,
        actor_id: str | None = None,
    ) -> RepairResponse:
        """Reset the live balance to its replayed value and audit the correction."""
        projector = await self._get_balance_projector()
        before = await projector.repair(product_id, warehouse_id)

        if not before.consistent:
            await record_audit(
                await self._get_audit_sink(),
                AuditEvent(
                    action="balance_repaired",
                    entity_type="inventory_item",
                    entity_id=f"{product_id}:{warehouse_id}",
                    actor_id=actor_id,
                    details={
                        "live_quantity": before.live_quantity,
                        "replayed_quantity": before.replayed_quantity,
                        "drift": before.drift,
                    },
                ),
            )

        return RepairResponse(
            before=check_to_response(before),
            repaired=not before.consistent,
            quantity=before.replayed_quantity,
        )
