"""Inventory endpoints: balances, batches, verification and repair."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from stockledger.api.dependencies import (
    get_balance_use_case,
    get_batches_use_case,
    get_verify_balances_use_case,
)
from stockledger.application.dto.requests import RepairBalanceRequest
from stockledger.application.dto.responses import (
    BalanceCheckResponse,
    BalanceResponse,
    BatchListResponse,
    InventoryStatusResponse,
    RepairResponse,
    VerifyAllResponse,
)
from stockledger.application.use_cases import (
    GetBalanceUseCase,
    GetBatchesUseCase,
    VerifyBalancesUseCase,
)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("/status", response_model=InventoryStatusResponse)
async def get_inventory_status(
    warehouse_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    use_case: GetBalanceUseCase = Depends(get_balance_use_case),
) -> InventoryStatusResponse:
    """Current balances, optionally for one warehouse."""
    return await use_case.list_balances(warehouse_id=warehouse_id, limit=limit, offset=offset)


@router.get("/verify", response_model=VerifyAllResponse)
async def verify_all_balances(
    use_case: VerifyBalancesUseCase = Depends(get_verify_balances_use_case),
) -> VerifyAllResponse:
    """Replay the ledger for every balance and report mismatches."""
    return await use_case.verify_all()


@router.get("/{product_id}/batches", response_model=BatchListResponse)
async def get_product_batches(
    product_id: str,
    as_of: date | None = Query(default=None, description="Classify expiry as of this date"),
    use_case: GetBatchesUseCase = Depends(get_batches_use_case),
) -> BatchListResponse:
    """Batches of a product across every warehouse."""
    return await use_case.execute(product_id, today=as_of)


@router.get("/{product_id}/{warehouse_id}", response_model=BalanceResponse)
async def get_balance(
    product_id: str,
    warehouse_id: str,
    use_case: GetBalanceUseCase = Depends(get_balance_use_case),
) -> BalanceResponse:
    """Live balance of one product in one warehouse."""
    return await use_case.execute(product_id, warehouse_id)


@router.get("/{product_id}/{warehouse_id}/batches", response_model=BatchListResponse)
async def get_batches(
    product_id: str,
    warehouse_id: str,
    as_of: date | None = Query(default=None, description="Classify expiry as of this date"),
    use_case: GetBatchesUseCase = Depends(get_batches_use_case),
) -> BatchListResponse:
    """Batches of a product in one warehouse, soonest expiry first."""
    return await use_case.execute(product_id, warehouse_id, today=as_of)


@router.get("/{product_id}/{warehouse_id}/verify", response_model=BalanceCheckResponse)
async def verify_balance(
    product_id: str,
    warehouse_id: str,
    use_case: VerifyBalancesUseCase = Depends(get_verify_balances_use_case),
) -> BalanceCheckResponse:
    """Compare the live balance with a replay of the ledger."""
    return await use_case.verify(product_id, warehouse_id)


@router.post("/{product_id}/{warehouse_id}/repair", response_model=RepairResponse)
async def repair_balance(
    product_id: str,
    warehouse_id: str,
    request: RepairBalanceRequest | None = None,
    use_case: VerifyBalancesUseCase = Depends(get_verify_balances_use_case),
) -> RepairResponse:
    """Reset the live balance to the replayed value."""
    actor_id = request.actor_id if request else None
    return await use_case.repair(product_id, warehouse_id, actor_id=actor_id)
