"""Tests for CoinGeckoProvider (mocked transport)."""

import httpx
import pytest

from cointrack.market.backoff import BackoffController
from cointrack.market.coingecko_client import DEFAULT_API_URL, CoinGeckoProvider
from cointrack.market.errors import RateLimitExceeded


def _recording_transport(requests, *responses):
    """MockTransport that records requests and replies from ``responses`` in order."""
    remaining = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return remaining.pop(0) if remaining else httpx.Response(200, json=[])

    return httpx.MockTransport(handler)


class TestBuildParams:
    def test_query_parameters(self):
        params = CoinGeckoProvider.build_params(2, 100, "market_cap_desc")
        assert params == {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": 100,
            "page": 2,
            "sparkline": "true",
            "price_change_percentage": "24h,7d",
        }


@pytest.mark.asyncio
class TestCoinGeckoProvider:
    """Unit tests for CoinGeckoProvider with a mocked transport."""

    async def test_fetch_page_request(self, make_page):
        requests = []
        transport = _recording_transport(requests, httpx.Response(200, json=make_page("a", 2)))
        provider = CoinGeckoProvider(api_key="test-key", transport=transport)

        response = await provider.fetch_page(1, 100, "total_volume_asc")
        await provider.aclose()

        assert response.status_code == 200
        assert len(response.json()) == 2
        request = requests[0]
        assert str(request.url).startswith(DEFAULT_API_URL)
        assert request.url.params["order"] == "total_volume_asc"
        assert request.url.params["page"] == "1"
        assert request.headers["X-RapidAPI-Key"] == "test-key"
        assert request.headers["X-RapidAPI-Host"] == "coingecko.p.rapidapi.com"

    async def test_non_2xx_returned_unchanged(self):
        """Status handling belongs to the backoff layer, not the client."""
        transport = _recording_transport([], httpx.Response(429))
        provider = CoinGeckoProvider(api_key="k", transport=transport)

        response = await provider.fetch_page(1, 10, "market_cap_desc")
        await provider.aclose()

        assert response.status_code == 429

    async def test_with_backoff(self, sleep):
        requests = []
        transport = _recording_transport(requests, *[httpx.Response(429) for _ in range(4)])
        provider = CoinGeckoProvider(api_key="k", transport=transport)
        backoff = BackoffController(sleep=sleep)

        with pytest.raises(RateLimitExceeded):
            await backoff.attempt(lambda: provider.fetch_page(1, 10, "market_cap_desc"))
        await provider.aclose()

        assert len(requests) == 4

    async def test_aclose_is_idempotent(self):
        provider = CoinGeckoProvider(api_key="k", transport=_recording_transport([]))
        await provider.fetch_page(1, 10, "market_cap_desc")
        await provider.aclose()
        await provider.aclose()  # Should not raise
