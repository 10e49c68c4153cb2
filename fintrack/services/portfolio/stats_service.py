"""Loads the portfolio value series for charts."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.portfolio.valuation_service import PortfolioValuationService
from fintrack.services.portfolio.valuation_types import StatsPoint
from fintrack.services.repositories.account_repository import AccountRepository
from fintrack.services.repositories.account_update_repository import AccountUpdateRepository

logger = logging.getLogger(__name__)


class StatsService:
    """Reads accounts and the audit trail and turns them into ``StatsPoint``s."""

    def __init__(
        self,
        db: Session,
        rates_service: CurrencyRatesService,
        valuation: PortfolioValuationService | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._accounts = AccountRepository(db)
        self._updates = AccountUpdateRepository(db)
        self._rates_service = rates_service
        self._valuation = valuation or PortfolioValuationService(clock=clock)
        self._clock = clock

    def load_series(self, range_days: int | None = None) -> list[StatsPoint]:
        """
        Build the value series, optionally limited to the last ``range_days`` days.

        Raises:
            RateFetchError: No rates could be fetched and none are cached
        """
        if range_days is not None and range_days <= 0:
            raise ValueError("range_days must be positive")

        accounts = self._accounts.find_all()
        updates = self._updates.find_all_chronological()
        rates = self._rates_service.fetch_rates()

        points = self._valuation.build_series(accounts, updates, rates)
        logger.info(f"Built {len(points)} stats points from {len(updates)} balance updates")

        if range_days is None:
            return points
        return self._valuation.filter_range(points, self._clock() - timedelta(days=range_days))
