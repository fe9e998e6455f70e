"""Application use cases."""

from stockledger.application.use_cases.checkout_lifecycle import (
    ApproveCheckoutUseCase,
    RecordDeliveryUseCase,
    RejectCheckoutUseCase,
)
from stockledger.application.use_cases.get_balance import GetBalanceUseCase
from stockledger.application.use_cases.get_batches import GetBatchesUseCase
from stockledger.application.use_cases.query_transactions import QueryTransactionsUseCase
from stockledger.application.use_cases.submit_transaction import SubmitTransactionUseCase
from stockledger.application.use_cases.verify_balances import VerifyBalancesUseCase

__all__ = [
    "SubmitTransactionUseCase",
    "ApproveCheckoutUseCase",
    "RejectCheckoutUseCase",
    "RecordDeliveryUseCase",
    "QueryTransactionsUseCase",
    "GetBalanceUseCase",
    "GetBatchesUseCase",
    "VerifyBalancesUseCase",
]
