"""Inventory transaction endpoints: submission and the check-out lifecycle."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_approve_checkout_use_case,
    get_query_transactions_use_case,
    get_record_delivery_use_case,
    get_reject_checkout_use_case,
    get_submit_transaction_use_case,
)
from stockledger.application.dto.requests import (
    ApproveTransactionRequest,
    RecordDeliveryRequest,
    RejectTransactionRequest,
    SubmitTransactionRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    TransactionListResponse,
    TransactionResponse,
)
from stockledger.application.use_cases import (
    ApproveCheckoutUseCase,
    QueryTransactionsUseCase,
    RecordDeliveryUseCase,
    RejectCheckoutUseCase,
    SubmitTransactionUseCase,
)
from stockledger.application.use_cases.mappers import transaction_to_response

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

_TRANSITION_ERRORS = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def submit_transaction(
    request: SubmitTransactionRequest,
    use_case: SubmitTransactionUseCase = Depends(get_submit_transaction_use_case),
) -> TransactionResponse:
    """
    Submit a check-in, check-out or transfer.

    Check-ins and transfers take effect immediately. Check-outs wait for
    approval unless the submitting actor may auto-approve.
    """
    entry = await use_case.execute(request)
    return use_case.to_response(entry)


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    product_id: str | None = None,
    warehouse_id: str | None = None,
    type: str | None = Query(default=None, pattern="^(check_in|check_out|transfer)$"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: QueryTransactionsUseCase = Depends(get_query_transactions_use_case),
) -> TransactionListResponse:
    """Transaction history, newest first."""
    return await use_case.history(
        product_id=product_id,
        warehouse_id=warehouse_id,
        transaction_type=type,
        limit=limit,
        offset=offset,
    )


@router.get("/pending-approval", response_model=TransactionListResponse)
async def list_pending_approval(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: QueryTransactionsUseCase = Depends(get_query_transactions_use_case),
) -> TransactionListResponse:
    """Check-outs awaiting an approval decision."""
    return await use_case.pending_approval(limit=limit, offset=offset)


@router.get("/pending-delivery", response_model=TransactionListResponse)
async def list_pending_delivery(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: QueryTransactionsUseCase = Depends(get_query_transactions_use_case),
) -> TransactionListResponse:
    """Approved check-outs not yet delivered."""
    return await use_case.pending_delivery(limit=limit, offset=offset)


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_transaction(
    transaction_id: int,
    use_case: QueryTransactionsUseCase = Depends(get_query_transactions_use_case),
) -> TransactionResponse:
    """Get one ledger entry."""
    return transaction_to_response(await use_case.get(transaction_id))


@router.post(
    "/{transaction_id}/approve",
    response_model=TransactionResponse,
    responses=_TRANSITION_ERRORS,
)
async def approve_transaction(
    transaction_id: int,
    request: ApproveTransactionRequest | None = None,
    use_case: ApproveCheckoutUseCase = Depends(get_approve_checkout_use_case),
) -> TransactionResponse:
    """Approve a pending check-out; fails with 409 if stock is insufficient."""
    entry = await use_case.execute(transaction_id, request or ApproveTransactionRequest())
    return use_case.to_response(entry)


@router.post(
    "/{transaction_id}/reject",
    response_model=TransactionResponse,
    responses=_TRANSITION_ERRORS,
)
async def reject_transaction(
    transaction_id: int,
    request: RejectTransactionRequest | None = None,
    use_case: RejectCheckoutUseCase = Depends(get_reject_checkout_use_case),
) -> TransactionResponse:
    """Reject a pending check-out."""
    entry = await use_case.execute(transaction_id, request or RejectTransactionRequest())
    return use_case.to_response(entry)


@router.post(
    "/{transaction_id}/delivery",
    response_model=TransactionResponse,
    responses=_TRANSITION_ERRORS,
)
async def record_delivery(
    transaction_id: int,
    request: RecordDeliveryRequest | None = None,
    use_case: RecordDeliveryUseCase = Depends(get_record_delivery_use_case),
) -> TransactionResponse:
    """Record delivery of an approved check-out. A second call returns 409."""
    entry = await use_case.execute(transaction_id, request or RecordDeliveryRequest())
    return use_case.to_response(entry)
