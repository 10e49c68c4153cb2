"""Portfolio total API router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fintrack.config import Settings
from fintrack.database import get_db
from fintrack.dependencies import get_settings, get_total_calculator
from fintrack.schemas.stats import TotalResponse
from fintrack.services.portfolio.total_calculator import TotalCalculator
from fintrack.services.portfolio.valuation_types import TotalState
from fintrack.services.repositories.account_repository import AccountRepository

router = APIRouter(prefix="/api/total", tags=["total"])


def _to_response(state: TotalState, currency: str) -> TotalResponse:
    return TotalResponse(
        currency=currency,
        status=state.status.value,
        generation=state.generation,
        total=state.total,
        error=state.error,
        is_loading=state.is_loading,
        rates_fetched_at=state.rates_fetched_at,
    )


@router.get("", response_model=TotalResponse)
async def get_total(
    calculator: TotalCalculator = Depends(get_total_calculator),
    settings: Settings = Depends(get_settings),
):
    """Get the last computed total without starting a new computation."""
    return _to_response(calculator.state, settings.reference_currency)


@router.post("/refresh", response_model=TotalResponse)
async def refresh_total(
    db: Session = Depends(get_db),
    calculator: TotalCalculator = Depends(get_total_calculator),
    settings: Settings = Depends(get_settings),
):
    """Recompute the total from the current accounts.

    If a newer computation superseded this one, the newest committed state
    is returned instead.
    """
    accounts = AccountRepository(db).find_all()
    state = await calculator.recompute(accounts)
    return _to_response(state or calculator.state, settings.reference_currency)
