"""CoinGecko (via RapidAPI) client for real crypto market data."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import httpx

from .constants import PRICE_CHANGE_WINDOWS, VS_CURRENCY
from .interface import MarketDataProvider

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://coingecko.p.rapidapi.com/coins/markets"


class CoinGeckoProvider(MarketDataProvider):
    """MarketDataProvider backed by the CoinGecko ``/coins/markets`` endpoint.

    One call returns one page of assets with sparkline and 24h/7d changes.

    Rate limits:
      - Free plans answer bursts with HTTP 429 → the BackoffController
        handles the wait, this class only issues single requests.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "X-RapidAPI-Key": self._api_key,
            "X-RapidAPI-Host": urlsplit(self._api_url).netloc,
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self._headers(),
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def build_params(page: int, per_page: int, order: str) -> dict[str, str | int]:
        return {
            "vs_currency": VS_CURRENCY,
            "order": order,
            "per_page": per_page,
            "page": page,
            "sparkline": "true",
            "price_change_percentage": PRICE_CHANGE_WINDOWS,
        }

    async def fetch_page(self, page: int, per_page: int, order: str) -> httpx.Response:
        client = self._get_client()
        params = self.build_params(page, per_page, order)
        response = await client.get(self._api_url, params=params)
        logger.debug("CoinGecko page %d (%s): HTTP %d", page, order, response.status_code)
        return response

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._client = None
        logger.info("CoinGecko client closed")
