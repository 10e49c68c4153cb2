"""Pydantic schemas for request/response validation."""

from fintrack.schemas.account import Account, AccountUpdate
from fintrack.schemas.account_update import BalanceUpdate, BalanceUpdateCreate
from fintrack.schemas.stats import StatsPoint, StatsSeries, TotalResponse
from fintrack.schemas.transaction import Transaction, TransactionCreate, TransactionUpdate

__all__ = [
    "Account",
    "AccountUpdate",
    "BalanceUpdate",
    "BalanceUpdateCreate",
    "StatsPoint",
    "StatsSeries",
    "TotalResponse",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
]
