"""Data transfer objects between the API and use cases."""

from stockledger.application.dto.requests import (
    ApproveTransactionRequest,
    RecordDeliveryRequest,
    RejectTransactionRequest,
    RepairBalanceRequest,
    SubmitTransactionRequest,
)
from stockledger.application.dto.responses import (
    BalanceCheckResponse,
    BalanceResponse,
    BatchListResponse,
    BatchResponse,
    DeliveryDetailsResponse,
    ErrorResponse,
    HealthResponse,
    InventoryStatusResponse,
    PaginatedResponse,
    ProviderHealthResponse,
    RepairResponse,
    TransactionListResponse,
    TransactionResponse,
    VerifyAllResponse,
)

__all__ = [
    # Requests
    "SubmitTransactionRequest",
    "ApproveTransactionRequest",
    "RejectTransactionRequest",
    "RecordDeliveryRequest",
    "RepairBalanceRequest",
    # Responses
    "TransactionResponse",
    "TransactionListResponse",
    "DeliveryDetailsResponse",
    "BalanceResponse",
    "InventoryStatusResponse",
    "BatchResponse",
    "BatchListResponse",
    "BalanceCheckResponse",
    "VerifyAllResponse",
    "RepairResponse",
    "PaginatedResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
