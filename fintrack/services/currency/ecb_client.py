"""European Central Bank reference rates client.

The ECB publishes one XML document per business day with the rate of every
quoted currency against EUR, which is exactly the shape of our rate table.
"""

import logging
import xml.etree.ElementTree as ET
from decimal import Decimal, InvalidOperation

import httpx

from fintrack.constants import Currency
from fintrack.services.currency.exceptions import MalformedPayloadError, RateFetchError
from fintrack.services.shared.http_client import HTTPClient, HTTPClientError

logger = logging.getLogger(__name__)

ECB_DAILY_URL = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"


class EcbRatesClient(HTTPClient):
    """Fetches the daily EUR reference rates.

    Usage:
        client = EcbRatesClient()
        rates = client.fetch_rates()  # {"EUR": Decimal("1"), "USD": Decimal("1.0842"), ...}
    """

    def __init__(
        self,
        url: str = ECB_DAILY_URL,
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ):
        super().__init__(
            timeout=timeout,
            max_retries=max_retries,
            headers={"Accept": "application/xml"},
            transport=transport,
        )
        self.url = url

    def fetch_rates(self) -> dict[str, Decimal]:
        """Fetch and parse the daily rates.

        Returns:
            Dict of uppercase currency code to units per 1 EUR, EUR included

        Raises:
            RateFetchError: Source unreachable or non-success status
            MalformedPayloadError: Payload is not the expected XML document
        """
        logger.info(f"Fetching ECB rates from {self.url}")
        try:
            body = self.get_text(self.url)
        except HTTPClientError as e:
            raise RateFetchError(f"Failed to load exchange rates: {e}") from e

        rates = parse_ecb_document(body)
        logger.info(
            f"Received {len(rates)} rates (including EUR); "
            f"sample: {', '.join(list(rates)[:5])}"
        )
        return rates


def parse_ecb_document(body: str) -> dict[str, Decimal]:
    """Parse an ECB ``eurofxref`` document into a rate table.

    Cube elements are namespaced, so they are matched on the local tag name.
    Entries with an unparsable rate are skipped.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        logger.error(f"ECB XML parsing failed: {e}")
        raise MalformedPayloadError("Exchange rates payload malformed.") from e

    cubes = [
        element
        for element in root.iter()
        if element.tag.rsplit("}", 1)[-1] == "Cube" and element.get("currency") is not None
    ]
    if not cubes:
        logger.warning("No currency nodes found in ECB payload")
        raise MalformedPayloadError("Exchange rates payload malformed.")

    rates: dict[str, Decimal] = {Currency.EUR: Decimal("1")}
    for cube in cubes:
        currency = cube.get("currency")
        raw_rate = cube.get("rate")
        if not currency or raw_rate is None:
            continue
        try:
            rate = Decimal(raw_rate.strip())
        except InvalidOperation:
            logger.warning(f"Could not parse rate '{raw_rate}' for {currency}")
            continue
        if not rate.is_finite() or rate <= 0:
            logger.warning(f"Ignoring non-positive rate '{raw_rate}' for {currency}")
            continue
        rates[currency.strip().upper()] = rate

    # EUR is the pivot; a stray EUR cube must not override it
    rates[Currency.EUR] = Decimal("1")
    return rates
