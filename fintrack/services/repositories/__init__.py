"""Data access layer."""

from .account_repository import AccountRepository
from .account_update_repository import AccountUpdateRepository
from .exceptions import NotFoundError, RepositoryError
from .transaction_repository import TransactionRepository

__all__ = [
    "AccountRepository",
    "AccountUpdateRepository",
    "NotFoundError",
    "RepositoryError",
    "TransactionRepository",
]
