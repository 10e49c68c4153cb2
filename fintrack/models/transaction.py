"""Transaction model - a single signed posting against one account."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.database import Base

if TYPE_CHECKING:
    from fintrack.models.account import Account


class Transaction(Base):
    """Transaction model.

    ``amount`` is signed and denominated in ``currency``, which may differ
    from the owning account's currency.
    """

    __tablename__ = "transactions"
    __table_args__ = (Index("idx_transactions_created", "created_at", "id"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime)
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    currency: Mapped[str] = mapped_column(String(10))
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"))

    # Relationships
    account: Mapped["Account"] = relationship(back_populates="transactions")

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, title='{self.title}', "
            f"{self.amount} {self.currency}, account={self.account_id})>"
        )
