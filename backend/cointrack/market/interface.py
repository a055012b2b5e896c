"""Abstract interface for market data providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx


class MarketDataProvider(ABC):
    """Contract for upstream market data feeds.

    A provider performs exactly one HTTP-shaped request per call and hands the
    raw response back. Status handling, retries, caching and de-duplication
    are layered on top by the FetchScheduler; providers never retry.

    Lifecycle:
        provider = create_market_data_provider()
        response = await provider.fetch_page(1, 100, "market_cap_desc")
        # ... app runs ...
        await provider.aclose()
    """

    @abstractmethod
    async def fetch_page(self, page: int, per_page: int, order: str) -> httpx.Response:
        """Request one page of the asset list.

        ``page`` is 1-based. ``order`` is an upstream order value such as
        ``market_cap_desc``. Transport failures propagate as
        ``httpx.TransportError``; HTTP error statuses are returned, not raised.
        """

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources. Safe to call multiple times."""
