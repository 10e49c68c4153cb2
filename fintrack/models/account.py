"""Account model - a named balance held in one currency."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.database import Base

if TYPE_CHECKING:
    from fintrack.models.account_update import AccountUpdate
    from fintrack.models.transaction import Transaction


class Account(Base):
    """Account model. ``balance`` is always expressed in ``currency``."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100))
    balance: Mapped[Decimal] = mapped_column(Numeric(20, 8), default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(10), default="EUR")

    # Relationships
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="account", cascade="all, delete-orphan", passive_deletes=True
    )
    updates: Mapped[list["AccountUpdate"]] = relationship(
        back_populates="account", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name='{self.name}', {self.balance} {self.currency})>"
