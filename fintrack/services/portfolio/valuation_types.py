"""Value objects for portfolio valuation."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class StatsPoint:
    """Total portfolio value, in the reference currency, at one point in time."""

    time: datetime
    total: Decimal


class TotalStatus(str, Enum):
    """Lifecycle of a total recomputation."""

    IDLE = "idle"
    LOADING = "loading"
    REFRESHING = "refreshing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class TotalState:
    """What the UI shows for the current total."""

    status: TotalStatus
    generation: int = 0
    total: Decimal | None = None
    error: str | None = None
    rates_fetched_at: datetime | None = None

    @property
    def is_loading(self) -> bool:
        return self.status in (TotalStatus.LOADING, TotalStatus.REFRESHING)
