"""Account update model - the balance audit trail."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.database import Base

if TYPE_CHECKING:
    from fintrack.models.account import Account


class AccountUpdate(Base):
    """
    One balance change of one account.

    Rows are append-only. Both balances are in the account's currency, and
    replay order is ``updated_at`` then ``id``.
    """

    __tablename__ = "account_updates"
    __table_args__ = (
        Index("idx_account_updates_time", "updated_at", "id"),
        Index("idx_account_updates_account", "account_id", "updated_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"))
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    new_balance: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    updated_at: Mapped[datetime] = mapped_column(DateTime)

    # Relationships
    account: Mapped["Account"] = relationship(back_populates="updates")

    def __repr__(self) -> str:
        return (
            f"<AccountUpdate(account={self.account_id}, "
            f"{self.previous_balance} -> {self.new_balance} at {self.updated_at})>"
        )
