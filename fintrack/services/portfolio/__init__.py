"""Portfolio valuation: current total and historical series.

Handles the reference-currency total, its interactive recomputation, and the
value series rebuilt from the balance audit trail.
"""

from .stats_service import StatsService
from .total_calculator import TotalCalculator
from .valuation_service import PortfolioValuationService
from .valuation_types import StatsPoint, TotalState, TotalStatus

__all__ = [
    "PortfolioValuationService",
    "StatsPoint",
    "StatsService",
    "TotalCalculator",
    "TotalState",
    "TotalStatus",
]
