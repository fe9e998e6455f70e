"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests replace these through
app.dependency_overrides.
"""

from functools import lru_cache

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
from stockledger.config import Settings, get_settings


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Transaction use cases
def get_submit_transaction_use_case() -> SubmitTransactionUseCase:
    """Get submit transaction use case."""
    return SubmitTransactionUseCase()


def get_approve_checkout_use_case() -> ApproveCheckoutUseCase:
    """Get approve checkout use case."""
    return ApproveCheckoutUseCase()


def get_reject_checkout_use_case() -> RejectCheckoutUseCase:
    """Get reject checkout use case."""
    return RejectCheckoutUseCase()


def get_record_delivery_use_case() -> RecordDeliveryUseCase:
    """Get record delivery use case."""
    return RecordDeliveryUseCase()


def get_query_transactions_use_case() -> QueryTransactionsUseCase:
    """Get transaction query use case."""
    return QueryTransactionsUseCase()


# Inventory use cases
def get_balance_use_case() -> GetBalanceUseCase:
    """Get balance use case."""
    return GetBalanceUseCase()


def get_batches_use_case() -> GetBatchesUseCase:
    """Get batches use case."""
    return GetBatchesUseCase()


def get_verify_balances_use_case() -> VerifyBalancesUseCase:
    """Get verify balances use case."""
    return VerifyBalancesUseCase()
