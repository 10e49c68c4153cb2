"""Fixtures for API tests: the real app over an in-memory database."""

import pytest
from fastapi.testclient import TestClient

from fintrack.config import Settings
from fintrack.main import create_app
from fintrack.services.currency.rates_service import CurrencyRatesService


@pytest.fixture
def client(fiat_source):
    """Create test client; rates come from the fake fiat source (EUR=1, USD=2)."""
    app = create_app(
        Settings(database_url="sqlite://", allowed_origins=[]),
        rates_service=CurrencyRatesService(fiat_source),
    )
    with TestClient(app) as test_client:
        yield test_client
