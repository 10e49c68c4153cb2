"""Transaction ledger: postings that keep account balances consistent.

Each insert, edit or delete converts the transaction amount into the owning
account's currency and moves the balance by the net effect. When a rate is
missing the transaction is still saved and the balance adjustment is skipped
with a warning, so the ledger stays usable with partial rate data.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from fintrack.constants import Currency, Events
from fintrack.models import Account, Transaction
from fintrack.services.currency.conversion import (
    coerce_amount,
    convert_or_none,
    normalize_currency,
)
from fintrack.services.currency.exceptions import RateFetchError
from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.events import EventBus
from fintrack.services.ledger.balance_service import BalanceService
from fintrack.services.repositories.account_repository import AccountRepository
from fintrack.services.repositories.transaction_repository import TransactionRepository

logger = logging.getLogger(__name__)


class TransactionService:
    """CRUD over transactions with compensating balance adjustments."""

    def __init__(
        self,
        db: Session,
        rates_service: CurrencyRatesService | None = None,
        events: EventBus | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._db = db
        self._rates_service = rates_service
        self._events = events
        self._clock = clock
        self._accounts = AccountRepository(db)
        self._transactions = TransactionRepository(db)
        self._balances = BalanceService(db, clock=clock)
        self._rates: Mapping[str, Decimal] | None = None

    def list(self) -> Sequence[Transaction]:
        """All transactions, most recent first."""
        return self._transactions.find_all()

    def get(self, transaction_id: int) -> Transaction:
        """Get one transaction or raise NotFoundError."""
        return self._transactions.get_by_id(transaction_id)

    def most_recent(self) -> Transaction | None:
        """The newest transaction, if any."""
        return self._transactions.find_most_recent()

    def currency_options(self, seed: Transaction | None = None) -> Sequence[str]:
        """
        Currencies offered when entering a transaction.

        Returns:
            Sorted account currencies plus the seed transaction's currency
            (or the most recent transaction's), falling back to EUR
        """
        currencies = {code.upper() for code in self._accounts.find_currencies()}
        source = seed if seed is not None else self.most_recent()
        if source is not None:
            currencies.add(source.currency.upper())
        options = sorted(currencies)
        if not options:
            options.append(Currency.EUR)
        return options

    def insert(
        self,
        title: str,
        amount: Decimal | int | float | str,
        currency: str,
        account_id: int,
        created_at: datetime | None = None,
    ) -> Transaction:
        """
        Save a transaction and post it to its account.

        Raises:
            NotFoundError: No account with ``account_id``
        """
        self._rates = None
        try:
            account = self._accounts.get_by_id(account_id)
            transaction = Transaction(
                title=title,
                amount=coerce_amount(amount),
                currency=normalize_currency(currency),
                account_id=account.id,
                created_at=created_at or self._clock(),
            )
            self._transactions.add(transaction)
            self._post(account, transaction.amount, transaction.currency, sign=1)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Inserted transaction {transaction.id} on account {account.id}")
        self._notify()
        return transaction

    def update(
        self,
        transaction_id: int,
        title: str | None = None,
        amount: Decimal | int | float | str | None = None,
        currency: str | None = None,
        account_id: int | None = None,
        created_at: datetime | None = None,
    ) -> Transaction:
        """
        Edit a transaction and adjust the affected balance(s) by the net change.

        Moving the transaction to another account reverses it on the old
        account and posts it on the new one; each side is skipped on its own
        when its conversion is unavailable.

        Raises:
            NotFoundError: Unknown transaction, or unknown target account
        """
        self._rates = None
        try:
            transaction = self._transactions.get_by_id(transaction_id)
            old_amount = transaction.amount
            old_currency = transaction.currency
            old_account = self._accounts.get_by_id(transaction.account_id)

            new_account = old_account
            if account_id is not None and account_id != old_account.id:
                new_account = self._accounts.get_by_id(account_id)

            if title is not None:
                transaction.title = title
            if amount is not None:
                transaction.amount = coerce_amount(amount)
            if currency is not None:
                transaction.currency = normalize_currency(currency)
            if created_at is not None:
                transaction.created_at = created_at
            transaction.account_id = new_account.id

            if new_account.id == old_account.id:
                self._repost(
                    old_account, old_amount, old_currency, transaction.amount, transaction.currency
                )
            else:
                self._post(old_account, old_amount, old_currency, sign=-1)
                self._post(new_account, transaction.amount, transaction.currency, sign=1)

            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Updated transaction {transaction.id}")
        self._notify()
        return transaction

    def delete(self, transaction_id: int) -> None:
        """
        Delete a transaction and reverse its posting.

        Raises:
            NotFoundError: No transaction with ``transaction_id``
        """
        self._rates = None
        try:
            transaction = self._transactions.get_by_id(transaction_id)
            account = self._accounts.get_by_id(transaction.account_id)
            self._post(account, transaction.amount, transaction.currency, sign=-1)
            self._transactions.delete(transaction)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Deleted transaction {transaction_id}")
        self._notify()

    def _post(self, account: Account, amount: Decimal, currency: str, sign: int) -> None:
        """Add (sign=1) or reverse (sign=-1) a posting on ``account``."""
        converted = self._convert(amount, currency, account.currency)
        if converted is None:
            logger.warning(
                f"No rate to convert {amount} {currency} into {account.currency}; "
                f"balance of account {account.id} left unchanged"
            )
            return
        self._balances.apply_delta(account, converted * sign)

    def _repost(
        self,
        account: Account,
        old_amount: Decimal,
        old_currency: str,
        new_amount: Decimal,
        new_currency: str,
    ) -> None:
        """Apply the net difference between two postings on the same account."""
        old_value = self._convert(old_amount, old_currency, account.currency)
        new_value = self._convert(new_amount, new_currency, account.currency)
        if old_value is None or new_value is None:
            logger.warning(
                f"Cannot convert edited transaction into {account.currency}; "
                f"balance of account {account.id} left unchanged"
            )
            return
        self._balances.apply_delta(account, new_value - old_value)

    def _convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal | None:
        # Identity conversions never trigger a rate lookup
        if from_currency.upper() == to_currency.upper():
            return amount
        return convert_or_none(amount, from_currency, to_currency, self._current_rates())

    def _current_rates(self) -> Mapping[str, Decimal]:
        """Rates for the operation in progress, loaded at most once per operation."""
        if self._rates is None:
            self._rates = {Currency.EUR: Decimal("1")}
            if self._rates_service is not None:
                try:
                    self._rates = self._rates_service.fetch_rates()
                except RateFetchError as e:
                    logger.warning(f"Exchange rates unavailable for posting: {e}")
        return self._rates

    def _notify(self) -> None:
        if self._events is None:
            return
        self._events.publish(Events.TRANSACTIONS_CHANGED, list(self.list()))
        self._events.publish(Events.ACCOUNTS_CHANGED, list(self._accounts.find_all()))
