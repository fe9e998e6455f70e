"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

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
    ErrorResponse,
    HealthResponse,
    TransactionListResponse,
    TransactionResponse,
)
from stockledger.application.services import (
    get_balance_projector,
    get_batch_projector,
    get_state_machine,
    get_transaction_engine,
    reset_services,
)
from stockledger.application.use_cases import (
    ApproveCheckoutUseCase,
    GetBalanceUseCase,
    GetBatchesUseCase,
    QueryTransactionsUseCase,
    RecordDeliveryUseCase,
    RejectCheckoutUseCase,
    SubmitTransactionUseCase,
    VerifyBalancesUseCase,
)

__all__ = [
    # Request DTOs
    "SubmitTransactionRequest",
    "ApproveTransactionRequest",
    "RejectTransactionRequest",
    "RecordDeliveryRequest",
    "RepairBalanceRequest",
    # Response DTOs
    "TransactionResponse",
    "TransactionListResponse",
    "BalanceResponse",
    "BatchListResponse",
    "BalanceCheckResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "SubmitTransactionUseCase",
    "ApproveCheckoutUseCase",
    "RejectCheckoutUseCase",
    "RecordDeliveryUseCase",
    "QueryTransactionsUseCase",
    "GetBalanceUseCase",
    "GetBatchesUseCase",
    "VerifyBalancesUseCase",
    # Service factories
    "get_balance_projector",
    "get_batch_projector",
    "get_state_machine",
    "get_transaction_engine",
    "reset_services",
]
