"""Pydantic schemas for totals and the value series."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class StatsPoint(BaseModel):
    """One point of the value series."""

    model_config = ConfigDict(from_attributes=True)

    time: datetime
    total: Decimal


class StatsSeries(BaseModel):
    """Value series in the reference currency."""

    currency: str
    range_days: int | None = None
    points: list[StatsPoint]


class TotalResponse(BaseModel):
    """Current total and its loading/error flags."""

    model_config = ConfigDict(from_attributes=True)

    currency: str
    status: str
    generation: int
    total: Decimal | None = None
    error: str | None = None
    is_loading: bool
    rates_fetched_at: datetime | None = None
