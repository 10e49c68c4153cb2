"""Account store: CRUD over accounts with audited balance edits."""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from fintrack.constants import Currency, Events
from fintrack.models import Account
from fintrack.services.currency.conversion import normalize_currency
from fintrack.services.events import EventBus
from fintrack.services.ledger.balance_service import BalanceService
from fintrack.services.repositories.account_repository import AccountRepository

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "New Account"


class AccountService:
    """Owns the authoritative current balance of every account.

    Every mutation is one session transaction. After a successful commit an
    ``ACCOUNTS_CHANGED`` event carrying the fresh account list is published.
    """

    def __init__(
        self,
        db: Session,
        events: EventBus | None = None,
        default_name: str = DEFAULT_ACCOUNT_NAME,
        default_currency: str = Currency.EUR,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._db = db
        self._events = events
        self._default_name = default_name
        self._default_currency = normalize_currency(default_currency)
        self._accounts = AccountRepository(db)
        self._balances = BalanceService(db, clock=clock)

    def list(self) -> Sequence[Account]:
        """All accounts ordered by name, case-insensitively."""
        return self._accounts.find_all()

    def get(self, account_id: int) -> Account:
        """Get one account or raise NotFoundError."""
        return self._accounts.get_by_id(account_id)

    def create_default(self) -> Account:
        """Create an account with the default name, currency and a zero balance."""
        account = Account(
            name=self._default_name,
            balance=Decimal("0"),
            currency=self._default_currency,
        )
        try:
            self._accounts.add(account)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Created account {account.id} ({account.currency})")
        self._notify()
        return account

    def update(
        self,
        account_id: int,
        name: str | None = None,
        balance: Decimal | int | float | str | None = None,
        currency: str | None = None,
    ) -> Account:
        """
        Update an account's fields.

        A balance that differs from the stored one by more than the epsilon
        appends an audit entry in the same transaction as the row update.

        Raises:
            NotFoundError: No account with ``account_id``
        """
        try:
            account = self._accounts.get_by_id(account_id)
            if name is not None:
                account.name = name
            if currency is not None:
                account.currency = normalize_currency(currency)
            if balance is not None:
                self._balances.set_balance(account, balance)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._notify()
        return account

    def delete(self, account_id: int) -> None:
        """
        Delete an account together with its transactions and audit entries.

        Raises:
            NotFoundError: No account with ``account_id``
        """
        try:
            account = self._accounts.get_by_id(account_id)
            self._accounts.delete(account)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Deleted account {account_id}")
        self._notify()

    def _notify(self) -> None:
        if self._events is not None:
            self._events.publish(Events.ACCOUNTS_CHANGED, list(self.list()))
