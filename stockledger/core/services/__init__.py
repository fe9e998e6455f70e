"""
Domain services.

Pure business logic over the core ports; no storage or transport details.
"""

from stockledger.core.services.approval_state_machine import ApprovalStateMachine
from stockledger.core.services.audit import record_audit, transaction_event
from stockledger.core.services.balance_projector import BalanceProjector, fold_balance
from stockledger.core.services.batch_projector import BatchProjector
from stockledger.core.services.transaction_engine import TransactionEngine

__all__ = [
    "ApprovalStateMachine",
    "BalanceProjector",
    "BatchProjector",
    "TransactionEngine",
    "fold_balance",
    "record_audit",
    "transaction_event",
]
