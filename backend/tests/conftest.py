"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections import defaultdict, deque

import httpx
import pytest

from cointrack.market.interface import MarketDataProvider


def asset_record(asset_id: str, market_cap: float = 1_000.0, current_price: float = 1.0, **extra) -> dict:
    """Minimal CoinGecko ``/coins/markets`` record."""
    record = {
        "id": asset_id,
        "symbol": asset_id[:4],
        "name": asset_id.title(),
        "image": f"https://img.example/{asset_id}.png",
        "current_price": current_price,
        "market_cap": market_cap,
        "total_volume": market_cap / 10,
        "price_change_percentage_24h": 0.0,
        "price_change_percentage_7d_in_currency": 0.0,
        "sparkline_in_7d": {"price": [current_price, current_price]},
    }
    record.update(extra)
    return record


def page_of(prefix: str, count: int, top_cap: float = 1_000_000.0) -> list[dict]:
    """``count`` records with strictly decreasing market caps."""
    return [asset_record(f"{prefix}-{i}", market_cap=top_cap - i) for i in range(count)]


class ScriptedProvider(MarketDataProvider):
    """Serves canned pages and one-shot scripted outcomes; records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, int, str]] = []
        self.pages: dict[int, list[dict]] = {}
        self.closed = False
        self._scripts: dict[int, deque] = defaultdict(deque)

    def set_page(self, page: int, records: list[dict]) -> None:
        self.pages[page] = records

    def queue(self, page: int, *outcomes: httpx.Response | Exception) -> None:
        """Outcomes returned (or raised) by the next calls for ``page``, before the canned page."""
        self._scripts[page].extend(outcomes)

    def calls_for(self, page: int) -> int:
        return sum(1 for p, _, _ in self.calls if p == page)

    async def fetch_page(self, page: int, per_page: int, order: str) -> httpx.Response:
        self.calls.append((page, per_page, order))
        await asyncio.sleep(0)  # Behave like real I/O: yield to the loop
        if self._scripts[page]:
            outcome = self._scripts[page].popleft()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return httpx.Response(200, json=self.pages.get(page, []))

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_record():
    return asset_record


@pytest.fixture
def make_page():
    return page_of
