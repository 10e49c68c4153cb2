"""Per-account view of the balance audit trail."""

import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from fintrack.models import AccountUpdate
from fintrack.services.currency.conversion import coerce_amount
from fintrack.services.repositories.account_repository import AccountRepository
from fintrack.services.repositories.account_update_repository import AccountUpdateRepository

logger = logging.getLogger(__name__)


class AccountHistoryService:
    """Reads an account's balance history and appends back-dated entries."""

    def __init__(self, db: Session) -> None:
        self._db = db
        self._accounts = AccountRepository(db)
        self._updates = AccountUpdateRepository(db)

    def list_for_account(self, account_id: int) -> Sequence[AccountUpdate]:
        """
        Balance history of one account, newest first.

        Raises:
            NotFoundError: No account with ``account_id``
        """
        self._accounts.get_by_id(account_id)
        return self._updates.find_by_account(account_id)

    def record_historical_balance(
        self,
        account_id: int,
        previous_balance: Decimal | int | float | str,
        new_balance: Decimal | int | float | str,
        updated_at: datetime,
    ) -> AccountUpdate:
        """
        Append a back-dated audit entry without touching the current balance.

        Useful for accounts that existed before they were tracked: their past
        balances then show up in the valuation series.

        Raises:
            NotFoundError: No account with ``account_id``
        """
        try:
            account = self._accounts.get_by_id(account_id)
            update = AccountUpdate(
                account_id=account.id,
                previous_balance=coerce_amount(previous_balance),
                new_balance=coerce_amount(new_balance),
                updated_at=updated_at,
            )
            self._updates.add(update)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"Recorded historical balance for account {account_id} at {updated_at}")
        return update
