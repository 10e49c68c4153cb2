"""Currency rate model - the persisted snapshot of the last fetched rate table."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from fintrack.database import Base


class CurrencyRate(Base):
    """Units of ``currency`` per 1 EUR, as of ``fetched_at``.

    The table always holds a single snapshot: every row shares the same
    ``fetched_at`` and the whole set is replaced on each save.
    """

    __tablename__ = "currency_rates"

    currency: Mapped[str] = mapped_column(String(10), primary_key=True)
    rate: Mapped[Decimal] = mapped_column(Numeric(24, 12))
    fetched_at: Mapped[datetime] = mapped_column(DateTime)

    def __repr__(self) -> str:
        return f"<CurrencyRate({self.currency}={self.rate} at {self.fetched_at})>"
