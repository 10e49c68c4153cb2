"""Currency rates service - EUR-based rate table with caching.

Fiat rates come from the ECB. Crypto assets are added on a best-effort basis
from one or more quote sources; a failure there never fails the fetch.
The table is cached in memory for ``cache_duration`` and persisted through a
``RateCache`` so a cold start can serve the previous session's rates.
"""

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta
from decimal import Decimal
from types import MappingProxyType
from typing import Protocol

from fintrack.constants import Currency
from fintrack.services.currency.exceptions import RateFetchError
from fintrack.services.currency.rates_cache import RateCache

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DURATION = timedelta(hours=24)
DEFAULT_CRYPTO_SYMBOLS: tuple[str, ...] = ("BTC", "ETH")


class FiatRateSource(Protocol):
    """Primary source returning a full EUR-pivoted fiat table."""

    def fetch_rates(self) -> dict[str, Decimal]: ...


class CryptoQuoteSource(Protocol):
    """Source of crypto prices quoted in a fiat currency."""

    def get_current_prices(
        self, symbols: list[str], vs_currency: str = "eur"
    ) -> dict[str, Decimal]: ...


class CurrencyRatesService:
    """Fetches, caches and persists the EUR-based rate table.

    Usage:
        service = CurrencyRatesService(EcbRatesClient(), [CoinGeckoClient()], store=cache)
        rates = service.fetch_rates()
        if service.is_cache_stale:
            ...
    """

    def __init__(
        self,
        fiat_source: FiatRateSource,
        crypto_sources: Sequence[CryptoQuoteSource] = (),
        store: RateCache | None = None,
        cache_duration: timedelta = DEFAULT_CACHE_DURATION,
        crypto_symbols: Sequence[str] = DEFAULT_CRYPTO_SYMBOLS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._fiat_source = fiat_source
        self._crypto_sources = list(crypto_sources)
        self._store = store
        self._cache_duration = cache_duration
        self._crypto_symbols = [s.upper() for s in crypto_symbols]
        self._clock = clock

        self._cached_rates: Mapping[str, Decimal] | None = None
        self._last_fetch_time: datetime | None = None
        self._has_loaded_from_storage = False
        # Serializes refreshes so concurrent callers join one network fetch
        self._fetch_lock = threading.Lock()
        self._prime_lock = threading.Lock()

    @property
    def last_fetched_at(self) -> datetime | None:
        """When the cached table was fetched, if any."""
        return self._last_fetch_time

    @property
    def is_cache_stale(self) -> bool:
        """True when nothing was fetched yet or the last fetch is too old."""
        if self._last_fetch_time is None:
            return True
        return self._clock() - self._last_fetch_time >= self._cache_duration

    def _is_fresh(self) -> bool:
        return self._cached_rates is not None and not self.is_cache_stale

    def fetch_rates(self, force: bool = False) -> Mapping[str, Decimal]:
        """
        Return the current rate table, hitting the network only when needed.

        Args:
            force: Skip the in-memory cache window

        Returns:
            Read-only mapping of currency code to units per 1 EUR

        Raises:
            RateFetchError: Refresh failed and no cached table exists
        """
        self._prime_from_storage()

        if not force and self._is_fresh():
            logger.debug(f"Returning cached rates from {self._last_fetch_time}")
            return self._cached_rates

        with self._fetch_lock:
            # Another caller may have refreshed while we waited for the lock
            if not force and self._is_fresh():
                return self._cached_rates
            return self._refresh()

    def _refresh(self) -> Mapping[str, Decimal]:
        cached = self._cached_rates
        try:
            base_rates = self._fiat_source.fetch_rates()
        except RateFetchError as e:
            logger.warning(f"Failed to refresh exchange rates: {e}")
            if cached is not None:
                logger.warning(f"Falling back to cached rates from {self._last_fetch_time}")
                return cached
            raise

        combined: dict[str, Decimal] = {code.upper(): rate for code, rate in base_rates.items()}
        combined[Currency.EUR] = Decimal("1")

        try:
            combined.update(self._fetch_crypto_rates(combined))
        except Exception as e:
            logger.warning(f"Failed to fetch crypto rates: {e}", exc_info=True)

        fetched_at = self._clock()
        snapshot = MappingProxyType(combined)
        self._cached_rates = snapshot
        self._last_fetch_time = fetched_at

        if self._store is not None:
            try:
                self._store.save_rates(snapshot, fetched_at)
            except Exception as e:
                logger.error(f"Failed to persist exchange rates: {e}")

        return snapshot

    def _fetch_crypto_rates(self, base_rates: Mapping[str, Decimal]) -> dict[str, Decimal]:
        """Price each crypto symbol in EUR and invert it into units per EUR.

        Sources are tried in order for the symbols still missing. Within a
        source, EUR quotes are preferred; USD quotes are converted through the
        fetched USD rate.
        """
        crypto_rates: dict[str, Decimal] = {}
        missing = list(self._crypto_symbols)
        usd_rate = base_rates.get(Currency.USD)

        for source in self._crypto_sources:
            if not missing:
                break

            quotes_eur = self._quotes_from(source, missing, "eur")
            for symbol in missing:
                price = quotes_eur.get(symbol)
                if price is not None and price > 0:
                    crypto_rates[symbol] = Decimal("1") / price
            missing = [s for s in missing if s not in crypto_rates]

            if not missing:
                break
            if usd_rate is None or usd_rate == 0:
                logger.warning("Cannot convert crypto prices from USD without a USD base rate")
                continue

            quotes_usd = self._quotes_from(source, missing, "usd")
            for symbol in missing:
                price_usd = quotes_usd.get(symbol)
                if price_usd is None or price_usd <= 0:
                    continue
                price_eur = price_usd / usd_rate
                crypto_rates[symbol] = Decimal("1") / price_eur
            missing = [s for s in missing if s not in crypto_rates]

        if missing:
            logger.warning(f"No crypto price for {', '.join(missing)}")
        if crypto_rates:
            logger.info(f"Added crypto rates for {', '.join(crypto_rates)}")
        return crypto_rates

    @staticmethod
    def _quotes_from(
        source: CryptoQuoteSource, symbols: list[str], vs_currency: str
    ) -> Mapping[str, Decimal]:
        """Quotes from one source; a failing source yields nothing."""
        try:
            return source.get_current_prices(list(symbols), vs_currency=vs_currency)
        except Exception as e:
            logger.warning(
                f"Crypto quote source {type(source).__name__} failed for "
                f"{vs_currency.upper()}: {e}"
            )
            return {}

    def load_stored_rates(self) -> Mapping[str, Decimal] | None:
        """Return previously loaded or persisted rates without forcing a fetch."""
        self._prime_from_storage()
        return self._cached_rates

    def clear_cache(self) -> None:
        """Forget the in-memory table; the next call primes from storage again."""
        with self._prime_lock:
            self._cached_rates = None
            self._last_fetch_time = None
            self._has_loaded_from_storage = False

    def close(self) -> None:
        """Release HTTP resources held by the sources."""
        for source in [self._fiat_source, *self._crypto_sources]:
            close = getattr(source, "close", None)
            if callable(close):
                close()

    def _prime_from_storage(self) -> None:
        """Load the persisted snapshot into memory, once per cache lifetime."""
        if self._has_loaded_from_storage:
            return
        with self._prime_lock:
            if self._has_loaded_from_storage:
                return
            self._has_loaded_from_storage = True
            if self._store is None:
                return
            try:
                stored = self._store.load_rates()
            except Exception as e:
                logger.error(f"Failed to load stored rates: {e}")
                return
            if stored is None:
                return
            # A fetch that already happened in this process wins over storage
            if self._cached_rates is None:
                self._cached_rates = MappingProxyType(dict(stored.rates))
                self._last_fetch_time = stored.fetched_at
                logger.info(f"Loaded stored rates fetched at {stored.fetched_at}")
