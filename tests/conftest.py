"""Shared fixtures: in-memory database, a controllable clock and fake rate sources."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

import fintrack.models  # noqa: F401  (registers tables on Base.metadata)
from fintrack.database import Base, build_engine, build_session_factory
from fintrack.services.currency.rates_service import CurrencyRatesService

START = datetime(2024, 3, 1, 12, 0, 0)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeFiatSource:
    """Stands in for the ECB client."""

    def __init__(self, rates: dict | None = None):
        self.rates = dict(rates or {"EUR": Decimal("1"), "USD": Decimal("2")})
        self.error: Exception | None = None
        self.calls = 0
        self.closed = False

    def fetch_rates(self) -> dict[str, Decimal]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.rates)

    def close(self) -> None:
        self.closed = True


class FakeQuoteSource:
    """Stands in for a crypto quote client; quotes are keyed by quote currency."""

    def __init__(self, eur: dict | None = None, usd: dict | None = None):
        self.quotes = {"eur": dict(eur or {}), "usd": dict(usd or {})}
        self.error: Exception | None = None
        self.calls: list[tuple[tuple[str, ...], str]] = []

    def get_current_prices(self, symbols, vs_currency="eur") -> dict[str, Decimal]:
        self.calls.append((tuple(symbols), vs_currency))
        if self.error is not None:
            raise self.error
        quotes = self.quotes.get(vs_currency.lower(), {})
        return {symbol: quotes[symbol] for symbol in symbols if symbol in quotes}


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    """Create a database session."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def fiat_source():
    return FakeFiatSource()


@pytest.fixture
def make_quote_source():
    """Factory for fake crypto quote sources."""
    return FakeQuoteSource


@pytest.fixture
def rates_service(fiat_source, clock):
    """Rates service over the fake fiat source, EUR=1 and USD=2, no persistence."""
    return CurrencyRatesService(fiat_source, clock=clock)
