"""SQLAlchemy ORM models."""

from fintrack.models.account import Account
from fintrack.models.account_update import AccountUpdate
from fintrack.models.currency_rate import CurrencyRate
from fintrack.models.transaction import Transaction

__all__ = [
    "Account",
    "AccountUpdate",
    "CurrencyRate",
    "Transaction",
]
