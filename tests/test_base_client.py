"""
Tests for infrastructure/http/base_client.py.

Covers: URL building, status mapping, circuit breaker interaction,
        JSON/text parsing, Retry-After handling, close.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from refmat_search.infrastructure.http import BaseAPIClient
from refmat_search.shared.async_utils import CircuitBreaker
from refmat_search.shared.exceptions import (
    NetworkError,
    ParseError,
    RateLimitError,
    ServiceUnavailableError,
    UpstreamError,
)


class _TestClient(BaseAPIClient):
    _service_name = "TestAPI"


@pytest.fixture
def client():
    c = _TestClient(base_url="https://api.example.org/", min_interval=0.0)
    c._client = AsyncMock()
    return c


# ============================================================
# Construction
# ============================================================


class TestInit:
    def test_base_url_trailing_slash_stripped(self, client):
        assert client.base_url == "https://api.example.org"

    def test_build_url(self, client):
        assert client._build_url("/items/1") == "https://api.example.org/items/1"
        assert client._build_url("https://other.org/x.csv") == "https://other.org/x.csv"

    def test_default_circuit_breaker(self):
        c = _TestClient()
        assert c._circuit_breaker.failure_threshold == 10


# ============================================================
# _make_request
# ============================================================


class TestMakeRequest:
    @pytest.mark.asyncio
    async def test_json_success(self, client, make_response):
        client._client.get.return_value = make_response(json_data={"ok": True})
        result = await client._make_request("/items", params={"q": "x"})
        assert result == {"ok": True}
        client._client.get.assert_awaited_once_with(
            "https://api.example.org/items", params={"q": "x"}, headers={}
        )

    @pytest.mark.asyncio
    async def test_text_success(self, client, make_response):
        client._client.get.return_value = make_response(text="<feed/>")
        assert await client._make_request("/feed", expect_json=False) == "<feed/>"

    @pytest.mark.asyncio
    async def test_invalid_json_raises_parse_error(self, client, make_response):
        client._client.get.return_value = make_response(text="not json")
        with pytest.raises(ParseError):
            await client._make_request("/items")

    @pytest.mark.asyncio
    async def test_429_raises_rate_limit(self, client, make_response):
        client._client.get.return_value = make_response(429, headers={"Retry-After": "3"})
        with pytest.raises(RateLimitError) as exc_info:
            await client._make_request("/items")
        assert exc_info.value.context.retry_after == 3.0

    @pytest.mark.asyncio
    async def test_5xx_raises_service_unavailable(self, client, make_response):
        client._client.get.return_value = make_response(503)
        with pytest.raises(ServiceUnavailableError):
            await client._make_request("/items")

    @pytest.mark.asyncio
    async def test_4xx_raises_non_retryable_upstream(self, client, make_response):
        client._client.get.return_value = make_response(400)
        with pytest.raises(UpstreamError) as exc_info:
            await client._make_request("/items")
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self, client):
        client._client.get.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(NetworkError, match="timeout"):
            await client._make_request("/items")

    @pytest.mark.asyncio
    async def test_connect_error_raises_network_error(self, client):
        client._client.get.side_effect = httpx.ConnectError("refused")
        with pytest.raises(NetworkError, match="connection failed"):
            await client._make_request("/items")


# ============================================================
# Circuit breaker
# ============================================================


class TestCircuitBreakerIntegration:
    @pytest.mark.asyncio
    async def test_server_errors_open_breaker(self, make_response):
        c = _TestClient(min_interval=0.0, circuit_breaker=CircuitBreaker(failure_threshold=2))
        c._client = AsyncMock()
        c._client.get.return_value = make_response(500)

        for _ in range(2):
            with pytest.raises(ServiceUnavailableError):
                await c._make_request("https://api.example.org/x")

        with pytest.raises(RateLimitError, match="Circuit breaker"):
            await c._make_request("https://api.example.org/x")

    @pytest.mark.asyncio
    async def test_client_errors_do_not_count(self, make_response):
        breaker = CircuitBreaker(failure_threshold=1)
        c = _TestClient(min_interval=0.0, circuit_breaker=breaker)
        c._client = AsyncMock()
        c._client.get.return_value = make_response(404)

        with pytest.raises(UpstreamError):
            await c._make_request("https://api.example.org/x")
        assert breaker.state == "closed"


# ============================================================
# Helpers and lifecycle
# ============================================================


class TestHelpers:
    def test_retry_after_default(self, make_response):
        assert BaseAPIClient._get_retry_after(make_response(429)) == 1.0

    def test_retry_after_invalid(self, make_response):
        response = make_response(429, headers={"Retry-After": "Wed, 21 Oct"})
        assert BaseAPIClient._get_retry_after(response) == 1.0

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self, client):
        async with client as c:
            assert c is client
        client._client.aclose.assert_awaited_once()
