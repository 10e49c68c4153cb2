"""Currency conversion over an EUR-pivoted rate table.

A rate table maps an uppercase currency code to the number of units of that
currency per 1 EUR. Conversion never raises for a missing rate; it returns
``Unavailable`` and leaves the decision to skip the amount to the caller.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from fintrack.constants import CURRENCY_PRECISION, DEFAULT_PRECISION, Currency

logger = logging.getLogger(__name__)

RateTable = Mapping[str, Decimal]


@dataclass(frozen=True)
class Converted:
    """Successful conversion."""

    value: Decimal


@dataclass(frozen=True)
class Unavailable:
    """Conversion could not be done because a rate is missing or zero."""

    currency: str


ConversionResult = Converted | Unavailable


def normalize_currency(code: str) -> str:
    """Uppercase and strip a currency code."""
    normalized = code.strip().upper()
    if not normalized:
        raise ValueError("Currency code must not be empty.")
    return normalized


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric amount to Decimal without binary float artefacts."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def _rate_for(code: str, rates: RateTable) -> Decimal | None:
    rate = rates.get(code)
    if rate is None or rate == 0:
        return None
    return coerce_amount(rate)


def convert(
    amount: Decimal | int | float | str,
    from_currency: str,
    to_currency: str,
    rates: RateTable,
) -> ConversionResult:
    """
    Convert ``amount`` from one currency to another, pivoting through EUR.

    Args:
        amount: Amount denominated in ``from_currency``
        from_currency: Source currency code (case-insensitive)
        to_currency: Target currency code (case-insensitive)
        rates: Units of each currency per 1 EUR

    Returns:
        ``Converted`` with the unrounded result, or ``Unavailable`` naming the
        currency whose rate is missing or zero
    """
    value = coerce_amount(amount)
    source = normalize_currency(from_currency)
    target = normalize_currency(to_currency)

    # Same currency never needs a rate
    if source == target:
        return Converted(value)

    if source == Currency.EUR:
        amount_in_eur = value
    else:
        source_rate = _rate_for(source, rates)
        if source_rate is None:
            logger.debug(f"Missing or zero rate for {source}, conversion unavailable")
            return Unavailable(source)
        amount_in_eur = value / source_rate

    if target == Currency.EUR:
        return Converted(amount_in_eur)

    target_rate = _rate_for(target, rates)
    if target_rate is None:
        logger.debug(f"Missing or zero rate for {target}, conversion unavailable")
        return Unavailable(target)
    return Converted(amount_in_eur * target_rate)


def convert_or_none(
    amount: Decimal | int | float | str,
    from_currency: str,
    to_currency: str,
    rates: RateTable,
) -> Decimal | None:
    """Shorthand for callers that only need the value or ``None``."""
    result = convert(amount, from_currency, to_currency, rates)
    if isinstance(result, Converted):
        return result.value
    return None


def suggest_precision(currency: str) -> int:
    """Number of fractional digits used to display amounts in ``currency``."""
    return CURRENCY_PRECISION.get(currency.strip().upper(), DEFAULT_PRECISION)


def format_amount(amount: Decimal | int | float | str, currency: str) -> str:
    """Format an amount for display, e.g. ``"12.50 EUR"``."""
    precision = suggest_precision(currency)
    value = coerce_amount(amount)
    quantized = value.quantize(Decimal(1).scaleb(-precision))
    return f"{quantized:f} {currency.strip().upper()}"
