"""
Base API Client - Common HTTP request pattern with rate limiting and circuit breaker.

Shared by the repository and identity clients:
- One pooled httpx.AsyncClient per client
- Rate limiting (configurable interval between requests)
- Circuit breaker for fault tolerance
- HTTP failures mapped onto the UpstreamError hierarchy

Retry policy is left to subclasses: the repository client retries transient
failures, the identity resolver never retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx
from typing_extensions import Self

from refmat_search.shared.async_utils import CircuitBreaker
from refmat_search.shared.exceptions import (
    ErrorContext,
    NetworkError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for external API clients.

    Subclasses should set ``_service_name`` and can override:
    - ``_handle_expected_status()``: service-specific status codes (e.g., 404)
    - ``_parse_response()``: custom response processing

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "MyAPI"

            def __init__(self):
                super().__init__(base_url="https://api.example.com", min_interval=0.1)

            async def get_item(self, item_id: str) -> dict:
                return await self._make_request(f"/items/{item_id}")
    """

    _service_name: str = "API"
    _USER_AGENT: str = "refmat-search/0.1"

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        min_interval: float = 0.1,
        headers: dict[str, str] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds
            min_interval: Minimum seconds between requests (rate limiting)
            headers: Default headers for all requests
            circuit_breaker: Optional circuit breaker for fault tolerance.
                             If None, a default one is created (threshold=10, recovery=60s).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._min_interval = min_interval
        self._last_request_time = 0.0
        self._rate_lock = asyncio.Lock()
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": self._USER_AGENT, **(headers or {})},
            follow_redirects=True,
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )
        self._circuit_breaker = circuit_breaker or CircuitBreaker(failure_threshold=10, recovery_timeout=60.0)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _rate_limit(self) -> None:
        """Enforce minimum interval between requests."""
        async with self._rate_lock:
            elapsed = time.time() - self._last_request_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.time()

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _make_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        expect_json: bool = True,
    ) -> dict[str, Any] | str:
        """
        Make one GET request under the circuit breaker.

        Args:
            url: Full URL or path (appended to base_url)
            params: Query parameters
            headers: Additional headers for this request
            expect_json: If True, parse response as JSON; otherwise return text

        Returns:
            Parsed JSON dict or response text

        Raises:
            RateLimitError: HTTP 429, or the circuit breaker is open
            ServiceUnavailableError: HTTP 5xx
            NetworkError: Connection failure or timeout
            UpstreamError: Any other non-success status
            ParseError: Body is not valid JSON when JSON was expected
        """
        full_url = self._build_url(url)
        await self._rate_limit()

        async with self._circuit_breaker:
            try:
                response = await self._execute_request(full_url, params=params, headers=headers)
            except httpx.TimeoutException as e:
                logger.warning(f"{self._service_name} timeout for {full_url}")
                raise NetworkError(
                    f"{self._service_name}: request timeout after {self._timeout}s",
                    context=ErrorContext(service=self._service_name, input_value=full_url),
                ) from e
            except httpx.RequestError as e:
                logger.warning(f"{self._service_name} request error: {e}")
                raise NetworkError(
                    f"{self._service_name}: connection failed: {e}",
                    context=ErrorContext(service=self._service_name, input_value=full_url),
                ) from e

            if response.status_code == 429:
                retry_after = self._get_retry_after(response)
                logger.warning(f"{self._service_name}: Rate limited (429), retry after {retry_after:.1f}s")
                raise RateLimitError(
                    f"Rate limited by {self._service_name}",
                    retry_after=retry_after,
                    context=ErrorContext(service=self._service_name),
                )
            if response.status_code >= 500:
                logger.warning(f"{self._service_name} HTTP error {response.status_code} for {full_url}")
                raise ServiceUnavailableError(
                    f"HTTP {response.status_code}: {response.reason_phrase}",
                    service=self._service_name,
                )

        # Client errors say nothing about service health; keep them out of the breaker
        self._handle_expected_status(response, full_url)
        if response.status_code >= 400:
            logger.warning(f"{self._service_name} HTTP error {response.status_code} for {full_url}")
            raise UpstreamError(
                f"{self._service_name}: HTTP {response.status_code}: {response.reason_phrase}",
                context=ErrorContext(service=self._service_name, input_value=full_url),
                retryable=False,
            )
        return self._parse_response(response, expect_json)

    async def _execute_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute the actual HTTP request. Override for custom behavior."""
        return await self._client.get(url, params=params, headers=headers or {})

    def _handle_expected_status(self, response: httpx.Response, url: str) -> None:
        """
        Handle expected non-200 status codes.

        Override in subclasses to raise a more specific error (e.g.,
        NotFoundError for 404). Default: no special handling.
        """

    def _parse_response(self, response: httpx.Response, expect_json: bool) -> dict[str, Any] | str:
        """Parse response body. Override for custom extraction logic."""
        if not expect_json:
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise ParseError("Invalid JSON response", source=self._service_name) from e

    @staticmethod
    def _get_retry_after(response: httpx.Response, default: float = 1.0) -> float:
        """Extract Retry-After from response headers."""
        try:
            return float(response.headers.get("Retry-After", default))
        except (ValueError, TypeError):
            return default

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
