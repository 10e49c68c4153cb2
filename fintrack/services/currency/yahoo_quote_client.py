"""Yahoo Finance quote source for crypto pairs, via yfinance.

Used after CoinGecko for any symbol it could not price. Yahoo lists crypto
pairs as ``BTC-EUR`` / ``BTC-USD``.
"""

import logging
import math
from decimal import Decimal

import yfinance as yf

logger = logging.getLogger(__name__)


class YahooQuoteClient:
    """Current crypto prices from Yahoo Finance."""

    def get_current_prices(
        self, symbols: list[str], vs_currency: str = "eur"
    ) -> dict[str, Decimal]:
        """
        Get the latest close for each ``<symbol>-<vs_currency>`` pair.

        Args:
            symbols: Crypto symbols (e.g., ["BTC", "ETH"])
            vs_currency: Quote currency

        Returns:
            Dict mapping uppercase symbol to price; symbols without data are omitted
        """
        quote = vs_currency.upper()
        prices: dict[str, Decimal] = {}

        for symbol in symbols:
            pair = f"{symbol.upper()}-{quote}"
            try:
                data = yf.Ticker(pair).history(period="1d")
                if data.empty:
                    logger.warning(f"No Yahoo data for {pair}")
                    continue
                close = float(data["Close"].iloc[-1])
            except Exception as e:
                logger.error(f"Error fetching Yahoo quote {pair}: {str(e)}")
                continue

            if math.isnan(close) or close <= 0:
                continue
            prices[symbol.upper()] = Decimal(str(close))

        return prices

    def close(self) -> None:
        """Nothing to release; yfinance manages its own session."""
