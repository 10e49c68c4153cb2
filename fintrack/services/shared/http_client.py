"""Base HTTP client with retry logic, timeouts, and error handling.

Rate provider clients inherit from this class to get consistent behavior for
retries, timeouts, and error handling.
"""

import logging
from typing import Any, Self

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class HTTPClient:
    """Base HTTP client with retry logic, timeouts, and error handling.

    Example usage:
        class EcbRatesClient(HTTPClient):
            def __init__(self):
                super().__init__(timeout=10.0)

            def fetch(self) -> str:
                return self.get_text("https://www.ecb.europa.eu/...")
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.default_headers = headers or {}
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url or "",
                timeout=self.timeout,
                headers=self.default_headers,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _send(
        self,
        method: str,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        merged_headers = {**self.default_headers, **(headers or {})}
        response = self.client.request(
            method=method,
            url=url,
            params=params,
            headers=merged_headers,
        )
        response.raise_for_status()
        return response

    def _request(
        self,
        method: str,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make HTTP request, retrying timeouts and connection failures.

        Args:
            method: HTTP method
            url: URL path (joined with base_url if set)
            params: Query parameters
            headers: Additional headers to merge with defaults

        Returns:
            httpx.Response object

        Raises:
            HTTPClientError: On HTTP errors, timeouts, or connection failures
        """
        retrying = Retrying(
            stop=stop_after_attempt(max(1, self.max_retries)),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
            reraise=True,
        )
        try:
            return retrying(self._send, method, url, params=params, headers=headers)
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"HTTP {e.response.status_code} for {method} {url}: {e.response.text[:200]}"
            )
            raise HTTPClientError(
                message=f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout for {method} {url}")
            raise HTTPClientError(f"Request timed out: {url}") from e
        except httpx.HTTPError as e:
            logger.warning(f"Connection error for {method} {url}: {e}")
            raise HTTPClientError(f"Connection failed: {url}") from e

    def get(
        self,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """HTTP GET request."""
        return self._request("GET", url, params=params, headers=headers)

    def get_json(self, url: str, params: dict | None = None) -> Any:
        """HTTP GET returning parsed JSON."""
        response = self.get(url, params=params)
        return response.json()

    def get_text(self, url: str, params: dict | None = None) -> str:
        """HTTP GET returning the decoded body."""
        return self.get(url, params=params).text
