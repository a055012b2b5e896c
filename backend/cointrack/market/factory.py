"""Factory for creating market data providers."""

from __future__ import annotations

import logging
import os

from .interface import MarketDataProvider

logger = logging.getLogger(__name__)


def create_market_data_provider() -> MarketDataProvider:
    """Create the appropriate market data provider based on environment variables.

    - COINGECKO_API_KEY set and non-empty → CoinGeckoProvider (real market data);
      COINGECKO_API_URL optionally overrides the endpoint
    - Otherwise → SimulatorProvider (GBM simulation)
    """
    api_key = os.environ.get("COINGECKO_API_KEY", "").strip()

    if api_key:
        from .coingecko_client import DEFAULT_API_URL, CoinGeckoProvider

        api_url = os.environ.get("COINGECKO_API_URL", "").strip() or DEFAULT_API_URL
        logger.info("Market data provider: CoinGecko (%s)", api_url)
        return CoinGeckoProvider(api_key=api_key, api_url=api_url)
    else:
        from .simulator import SimulatorProvider

        logger.info("Market data provider: GBM Simulator")
        return SimulatorProvider()
