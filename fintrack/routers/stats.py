"""Portfolio value series API router."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from fintrack.config import Settings
from fintrack.database import get_db
from fintrack.dependencies import get_rates_service, get_settings
from fintrack.schemas.stats import StatsPoint, StatsSeries
from fintrack.services.currency.exceptions import RateFetchError
from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.portfolio import PortfolioValuationService, StatsService

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/series", response_model=StatsSeries)
def get_series(
    range_days: int | None = Query(None, gt=0, description="Only the last N days"),
    db: Session = Depends(get_db),
    rates_service: CurrencyRatesService = Depends(get_rates_service),
    settings: Settings = Depends(get_settings),
):
    """Get the portfolio value over time in the reference currency."""
    valuation = PortfolioValuationService(
        reference_currency=settings.reference_currency,
        freshness=settings.stats_freshness,
    )
    try:
        points = StatsService(db, rates_service, valuation=valuation).load_series(range_days)
    except RateFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Exchange rates unavailable: {e}",
        ) from e

    return StatsSeries(
        currency=valuation.reference_currency,
        range_days=range_days,
        points=[StatsPoint(time=p.time, total=p.total) for p in points],
    )
