"""Persistence for the last successfully fetched rate table."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from fintrack.models.currency_rate import CurrencyRate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedRates:
    """A stored rate table and the time it was fetched."""

    rates: Mapping[str, Decimal]
    fetched_at: datetime


class RateCache:
    """Stores one rate snapshot in the ``currency_rates`` table.

    Each save replaces every row inside a single transaction, so a reader sees
    either the previous snapshot or the new one, never a mix.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def save_rates(self, rates: Mapping[str, Decimal], fetched_at: datetime) -> None:
        """Replace the stored snapshot with ``rates``."""
        with self._session_factory() as db, db.begin():
            db.execute(delete(CurrencyRate))
            db.add_all(
                CurrencyRate(currency=code.upper(), rate=rate, fetched_at=fetched_at)
                for code, rate in rates.items()
            )
        logger.info(f"Persisted {len(rates)} exchange rates fetched at {fetched_at}")

    def load_rates(self) -> CachedRates | None:
        """Return the stored snapshot, or ``None`` when nothing usable is stored."""
        with self._session_factory() as db:
            rows = db.execute(select(CurrencyRate)).scalars().all()

        if not rows:
            return None

        rates: dict[str, Decimal] = {}
        fetched_at: datetime | None = None
        for row in rows:
            rates[row.currency.upper()] = row.rate
            if fetched_at is None:
                fetched_at = row.fetched_at

        if not rates or fetched_at is None:
            return None
        return CachedRates(rates=rates, fetched_at=fetched_at)

    def clear(self) -> None:
        """Delete the stored snapshot."""
        with self._session_factory() as db, db.begin():
            db.execute(delete(CurrencyRate))
