"""Application constants to avoid magic strings."""

from decimal import Decimal

# Balance changes at or below this magnitude are treated as float noise
BALANCE_EPSILON = Decimal("0.0001")


class Currency:
    """Common currency constants."""

    EUR = "EUR"
    USD = "USD"
    BTC = "BTC"
    ETH = "ETH"


# Fractional digits shown per currency; anything not listed uses DEFAULT_PRECISION
CURRENCY_PRECISION: dict[str, int] = {
    "BTC": 8,
    "ETH": 6,
    "LTC": 6,
    "XRP": 6,
    "SOL": 6,
    "ADA": 6,
    "DOGE": 6,
    "DOT": 6,
}

DEFAULT_PRECISION = 2


class Events:
    """Event names published on the event bus."""

    ACCOUNTS_CHANGED = "ACCOUNTS_CHANGED"
    TRANSACTIONS_CHANGED = "TRANSACTIONS_CHANGED"
    TOTAL_CHANGED = "TOTAL_CHANGED"
