"""
Error rendering for the ledger API.

Every failure leaves the service as an ErrorResponse body: the LedgerError
code (or exception class name), its message, a recovery hint and, for
ledger errors, the error's details serialized into ``detail``. Rule
violations a client can fix map to 4xx; storage failures map to 500.
"""

import json
import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from stockledger.application.dto.responses import ErrorResponse
from stockledger.config import get_logger
from stockledger.core.exceptions import (
    AuditRequirementNotMetError,
    ConcurrencyConflictError,
    ConfigurationError,
    ExceedsPendingError,
    InsufficientStockError,
    InvalidTransitionError,
    LedgerError,
    NotFoundError,
    SameWarehouseError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)

# Checked in order. AlreadyDeliveredError is an InvalidTransitionError.
STATUS_RULES: tuple[tuple[tuple[type[Exception], ...], int], ...] = (
    ((NotFoundError,), status.HTTP_404_NOT_FOUND),
    ((ValidationError, SameWarehouseError, ValueError), status.HTTP_400_BAD_REQUEST),
    ((AuditRequirementNotMetError, ExceedsPendingError), status.HTTP_422_UNPROCESSABLE_ENTITY),
    (
        (InsufficientStockError, InvalidTransitionError, ConcurrencyConflictError),
        status.HTTP_409_CONFLICT,
    ),
    ((StorageError, ConfigurationError), status.HTTP_500_INTERNAL_SERVER_ERROR),
)

HINTS: dict[str, str] = {
    "TRANSACTION_NOT_FOUND": "Check the transaction ID and try GET /api/transactions to list entries.",
    "PO_LINE_NOT_FOUND": "Register the purchase-order line before receiving against it.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "SAME_WAREHOUSE": "A transfer needs different source and target warehouses.",
    "EXCEEDS_PENDING": "Receive at most the outstanding quantity of the purchase-order line.",
    "AUDIT_REQUIREMENT_NOT_MET": "Provide reason_code and a longer explanation, or link a PO line/request.",
    "INSUFFICIENT_STOCK": "Check GET /api/inventory/{product}/{warehouse} for the available quantity.",
    "INVALID_TRANSITION": "Re-read the transaction; its status has already moved on.",
    "ALREADY_DELIVERED": "Delivery is recorded once. Re-read the transaction for the stored details.",
    "CONCURRENCY_CONFLICT": "The item changed concurrently. Re-read and retry.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

FALLBACK_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "No such resource. Verify the ID.",
    405: "This path does not accept that method.",
    409: "The ledger state changed under the request. Re-read and retry.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
}

HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
}


def hint_for(error_code: str, status_code: int) -> str:
    return HINTS.get(error_code) or FALLBACK_HINTS.get(status_code, "")


def status_for(exc: Exception) -> int:
    for types, status_code in STATUS_RULES:
        if isinstance(exc, types):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _render(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Render any exception as an ErrorResponse and log it."""
    status_code = status_for(exc)
    if isinstance(exc, LedgerError):
        error_code = exc.code
        detail = json.dumps(exc.details, default=str) if exc.details else None
    else:
        error_code = type(exc).__name__
        detail = None

    server_fault = status_code >= 500
    (logger.error if server_fault else logger.warning)(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        error_type=error_code,
        error=str(exc),
        traceback=traceback.format_exc() if server_fault else None,
    )

    return _render(
        status_code,
        ErrorResponse(
            error_code=error_code,
            message=str(exc),
            hint=hint_for(error_code, status_code),
            detail=detail,
            path=request.url.path,
        ),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence for exceptions no registered handler took."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register renderers for ledger, request-validation and HTTP errors."""

    @app.exception_handler(LedgerError)
    async def ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{' -> '.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return _render(
            422,
            ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint=HINTS["VALIDATION_ERROR"],
                detail=problems,
                path=request.url.path,
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        error_code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return _render(
            exc.status_code,
            ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=hint_for(error_code, exc.status_code),
                path=request.url.path,
            ),
        )
