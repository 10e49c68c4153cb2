"""CoinGecko API client for cryptocurrency prices.

Primary quote source for crypto assets held in accounts (BTC, ETH, ...).
"""

import logging
from decimal import Decimal

import httpx

from fintrack.services.shared.http_client import HTTPClient, HTTPClientError

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# Symbol to CoinGecko ID mapping for common cryptocurrencies
SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "LTC": "litecoin",
    "XRP": "ripple",
    "USDC": "usd-coin",
    "USDT": "tether",
    "DOGE": "dogecoin",
    "ADA": "cardano",
    "SOL": "solana",
    "DOT": "polkadot",
}


class CoinGeckoAPIError(Exception):
    """Exception raised for CoinGecko API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CoinGeckoClient(HTTPClient):
    """Client for fetching current cryptocurrency prices from CoinGecko.

    Usage:
        client = CoinGeckoClient()
        prices = client.get_current_prices(["BTC", "ETH"], vs_currency="eur")
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = COINGECKO_BASE_URL,
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize CoinGecko client.

        Args:
            api_key: Optional demo API key for higher rate limits
            base_url: API root
            timeout: Request timeout in seconds
            max_retries: Attempts for timeouts and connection failures
            transport: Optional httpx transport (tests)
        """
        headers = {"Accept": "application/json"}
        if api_key:
            headers["x-cg-demo-api-key"] = api_key
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            headers=headers,
            transport=transport,
        )
        self.api_key = api_key

    def _fetch(self, endpoint: str, params: dict | None = None) -> dict:
        """GET an endpoint and return its JSON object.

        Raises:
            CoinGeckoAPIError: If the API returns an error or a non-object payload
        """
        try:
            result = self.get_json(endpoint, params=params)
        except HTTPClientError as e:
            if e.status_code == 429:
                raise CoinGeckoAPIError("Rate limit exceeded", status_code=429) from e
            raise CoinGeckoAPIError(f"Request error: {e}", status_code=e.status_code) from e
        except ValueError as e:
            raise CoinGeckoAPIError(f"Invalid JSON payload: {e}") from e

        if not isinstance(result, dict):
            raise CoinGeckoAPIError("Unexpected payload shape")
        return result

    def _symbol_to_id(self, symbol: str) -> str:
        """Convert cryptocurrency symbol to CoinGecko ID.

        Args:
            symbol: Crypto symbol (e.g., "BTC", "ETH")

        Returns:
            CoinGecko coin ID (e.g., "bitcoin", "ethereum")
        """
        upper_symbol = symbol.upper()
        if upper_symbol in SYMBOL_TO_ID:
            return SYMBOL_TO_ID[upper_symbol]
        # Fallback: convert to lowercase (works for many coins)
        return symbol.lower()

    def get_current_prices(
        self, symbols: list[str], vs_currency: str = "eur"
    ) -> dict[str, Decimal]:
        """Get current prices for multiple cryptocurrencies.

        Errors are logged and yield an empty result so one failing source
        never aborts rate enrichment.

        Args:
            symbols: List of crypto symbols (e.g., ["BTC", "ETH"])
            vs_currency: Quote currency (e.g., "eur", "usd")

        Returns:
            Dict mapping uppercase symbol to current price
        """
        if not symbols:
            return {}

        quote = vs_currency.lower()
        symbol_to_id_map = {s.upper(): self._symbol_to_id(s) for s in symbols}
        params = {
            "ids": ",".join(symbol_to_id_map.values()),
            "vs_currencies": quote,
        }

        try:
            result = self._fetch("/simple/price", params)
        except CoinGeckoAPIError as e:
            logger.error(f"Failed to fetch CoinGecko prices: {e}")
            return {}

        prices: dict[str, Decimal] = {}
        id_to_symbol = {v: k for k, v in symbol_to_id_map.items()}

        for coin_id, data in result.items():
            symbol = id_to_symbol.get(coin_id)
            if symbol and isinstance(data, dict) and data.get(quote) is not None:
                prices[symbol] = Decimal(str(data[quote]))

        logger.info(
            f"Fetched {quote.upper()} prices for {len(prices)}/{len(symbols)} cryptocurrencies"
        )
        return prices
