"""Accounts, transactions and the balance audit trail."""

from .account_history_service import AccountHistoryService
from .account_service import AccountService
from .balance_service import BalanceService
from .transaction_service import TransactionService

__all__ = [
    "AccountHistoryService",
    "AccountService",
    "BalanceService",
    "TransactionService",
]
