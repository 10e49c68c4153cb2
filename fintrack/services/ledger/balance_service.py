"""The single place where account balances change.

Every balance mutation, whether a direct edit or a transaction posting, goes
through ``BalanceService`` so the audit entry is written in the same session
transaction as the balance itself. Nothing here commits.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from fintrack.constants import BALANCE_EPSILON
from fintrack.models import Account, AccountUpdate
from fintrack.services.currency.conversion import coerce_amount
from fintrack.services.repositories.account_update_repository import AccountUpdateRepository

logger = logging.getLogger(__name__)


def exceeds_epsilon(change: Decimal) -> bool:
    """Whether a balance change is large enough to be recorded."""
    return abs(change) > BALANCE_EPSILON


class BalanceService:
    """Applies balance changes and appends audit entries."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now) -> None:
        self._db = db
        self._clock = clock
        self._updates = AccountUpdateRepository(db)

    def set_balance(
        self, account: Account, new_balance: Decimal | int | float | str
    ) -> AccountUpdate | None:
        """
        Overwrite the balance with a user-entered value.

        The balance is always written; the audit entry only when the change
        exceeds the epsilon.

        Returns:
            The audit entry, or None if the change was below the epsilon
        """
        previous = account.balance if account.balance is not None else Decimal("0")
        new = coerce_amount(new_balance)
        account.balance = new
        return self._record(account, previous, new)

    def apply_delta(
        self, account: Account, delta: Decimal | int | float | str
    ) -> AccountUpdate | None:
        """
        Add ``delta`` (in the account's currency) to the balance.

        The balance always moves; the audit entry is only written when the
        change exceeds the epsilon, so small postings still add up.

        Returns:
            The audit entry, or None if the change was below the epsilon
        """
        change = coerce_amount(delta)
        previous = account.balance if account.balance is not None else Decimal("0")
        new = previous + change
        account.balance = new
        if not exceeds_epsilon(change):
            logger.debug(f"Delta {change} for account {account.id} below audit threshold")
        return self._record(account, previous, new)

    def _record(self, account: Account, previous: Decimal, new: Decimal) -> AccountUpdate | None:
        if not exceeds_epsilon(new - previous):
            return None

        self._db.flush()
        update = AccountUpdate(
            account_id=account.id,
            previous_balance=previous,
            new_balance=new,
            updated_at=self._clock(),
        )
        self._updates.add(update)
        logger.info(
            f"Account {account.id} balance {previous} -> {new} {account.currency}"
        )
        return update
