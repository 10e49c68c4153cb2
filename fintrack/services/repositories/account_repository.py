"""Account data access layer."""

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session

from fintrack.models import Account
from fintrack.services.repositories.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence


class AccountRepository:
    """Centralized account data access.

    Naming conventions:
    - find_* : Query that may return None or empty list
    - get_* : Query that raises exception if missing

    Methods never commit; the calling service owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, account_id: int) -> Account | None:
        """Find account by primary key."""
        return self._db.query(Account).filter(Account.id == account_id).first()

    def get_by_id(self, account_id: int) -> Account:
        """Get account by primary key or raise NotFoundError."""
        account = self.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    def find_all(self) -> "Sequence[Account]":
        """All accounts ordered by name, case-insensitively."""
        return self._db.query(Account).order_by(func.lower(Account.name), Account.id).all()

    def find_currencies(self) -> list[str]:
        """Distinct account currencies."""
        return [row[0] for row in self._db.query(Account.currency).distinct().all()]

    def add(self, account: Account) -> Account:
        """Stage a new account and assign its id."""
        self._db.add(account)
        self._db.flush()
        return account

    def delete(self, account: Account) -> None:
        """Delete an account; transactions and updates cascade."""
        self._db.delete(account)
        self._db.flush()
