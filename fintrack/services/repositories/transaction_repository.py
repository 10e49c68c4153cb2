"""Transaction data access layer."""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from fintrack.models import Transaction
from fintrack.services.repositories.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence


class TransactionRepository:
    """Centralized transaction data access."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, transaction_id: int) -> Transaction | None:
        """Find transaction by primary key."""
        return self._db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def get_by_id(self, transaction_id: int) -> Transaction:
        """Get transaction by primary key or raise NotFoundError."""
        transaction = self.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def find_all(self) -> "Sequence[Transaction]":
        """All transactions, most recent first."""
        return (
            self._db.query(Transaction)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .all()
        )

    def find_most_recent(self) -> Transaction | None:
        """The first transaction in list order."""
        return (
            self._db.query(Transaction)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .first()
        )

    def add(self, transaction: Transaction) -> Transaction:
        """Stage a new transaction and assign its id."""
        self._db.add(transaction)
        self._db.flush()
        return transaction

    def delete(self, transaction: Transaction) -> None:
        """Delete a transaction."""
        self._db.delete(transaction)
        self._db.flush()
