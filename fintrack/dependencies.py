"""FastAPI dependencies for application-scoped resources.

Everything here is created once in the application lifespan and stored on
``app.state``; routes only borrow it.
"""

from fastapi import Request

from fintrack.config import Settings
from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.events import EventBus
from fintrack.services.portfolio.total_calculator import TotalCalculator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rates_service(request: Request) -> CurrencyRatesService:
    return request.app.state.rates_service


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.events


def get_total_calculator(request: Request) -> TotalCalculator:
    return request.app.state.total_calculator
