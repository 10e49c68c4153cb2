"""Balance audit trail data access layer."""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from fintrack.models import AccountUpdate

if TYPE_CHECKING:
    from collections.abc import Sequence


class AccountUpdateRepository:
    """Append-only access to ``account_updates``."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_all_chronological(self) -> "Sequence[AccountUpdate]":
        """Every update in replay order: ``updated_at`` then ``id``, ascending."""
        return (
            self._db.query(AccountUpdate)
            .order_by(AccountUpdate.updated_at.asc(), AccountUpdate.id.asc())
            .all()
        )

    def find_by_account(self, account_id: int) -> "Sequence[AccountUpdate]":
        """Updates of one account, newest first."""
        return (
            self._db.query(AccountUpdate)
            .filter(AccountUpdate.account_id == account_id)
            .order_by(AccountUpdate.updated_at.desc(), AccountUpdate.id.desc())
            .all()
        )

    def add(self, update: AccountUpdate) -> AccountUpdate:
        """Stage a new audit entry."""
        self._db.add(update)
        self._db.flush()
        return update
