"""Exchange rates and currency conversion."""

from .conversion import (
    ConversionResult,
    Converted,
    RateTable,
    Unavailable,
    convert,
    convert_or_none,
    format_amount,
    suggest_precision,
)
from .exceptions import MalformedPayloadError, RateFetchError
from .rates_cache import CachedRates, RateCache
from .rates_service import CurrencyRatesService

__all__ = [
    "CachedRates",
    "ConversionResult",
    "Converted",
    "CurrencyRatesService",
    "MalformedPayloadError",
    "RateCache",
    "RateFetchError",
    "RateTable",
    "Unavailable",
    "convert",
    "convert_or_none",
    "format_amount",
    "suggest_precision",
]
