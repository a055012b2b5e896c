"""Data models for market data."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SortKey(str, Enum):
    """Columns the asset list can be ordered by. Values are upstream field names."""

    MARKET_CAP = "market_cap"
    TOTAL_VOLUME = "total_volume"
    CURRENT_PRICE = "current_price"
    PRICE_CHANGE_24H = "price_change_percentage_24h"
    PRICE_CHANGE_7D = "price_change_percentage_7d"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortDirection:
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


@dataclass(frozen=True, slots=True)
class SortOrder:
    """Active sort key and direction for the asset list."""

    key: SortKey = SortKey.MARKET_CAP
    direction: SortDirection = SortDirection.DESC

    @property
    def order_param(self) -> str:
        """Upstream ``order`` query value, e.g. ``market_cap_desc``."""
        return f"{self.key.value}_{self.direction.value}"

    def toggled(self, key: SortKey) -> SortOrder:
        """Clicking a column: same key flips desc -> asc, anything else starts at desc."""
        if key is self.key and self.direction is SortDirection.DESC:
            return SortOrder(key, SortDirection.ASC)
        return SortOrder(key, SortDirection.DESC)


@dataclass(frozen=True, slots=True)
class PageKey:
    """Cache and dedup key: one upstream page under one sort order."""

    page: int
    sort_key: SortKey
    direction: SortDirection

    @classmethod
    def for_order(cls, page: int, order: SortOrder) -> PageKey:
        return cls(page=page, sort_key=order.key, direction=order.direction)


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """Live price figures the valuation engine needs for one asset."""

    current_price: float
    price_change_pct_24h: float = 0.0
    price_change_pct_7d: float = 0.0


def _number(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True, slots=True)
class AssetSnapshot:
    """Immutable market record for one asset as delivered by one fetch."""

    id: str
    name: str
    symbol: str
    image: str = ""
    current_price: float | None = None
    market_cap: float | None = None
    total_volume: float | None = None
    price_change_pct_24h: float | None = None
    price_change_pct_7d: float | None = None
    sparkline: tuple[float, ...] = field(default=())

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> AssetSnapshot:
        """Build a snapshot from one CoinGecko ``/coins/markets`` record.

        Raises KeyError/TypeError/ValueError for records without usable
        identity or with non-numeric figures.
        """
        asset_id = record["id"]
        if not isinstance(asset_id, str) or not asset_id:
            raise ValueError(f"invalid asset id: {asset_id!r}")

        # The *_in_currency variants are only present when price_change_percentage was requested
        pct_24h = record.get("price_change_percentage_24h_in_currency")
        if pct_24h is None:
            pct_24h = record.get("price_change_percentage_24h")
        pct_7d = record.get("price_change_percentage_7d_in_currency")
        if pct_7d is None:
            pct_7d = record.get("price_change_percentage_7d")

        sparkline = (record.get("sparkline_in_7d") or {}).get("price") or ()

        return cls(
            id=asset_id,
            name=str(record.get("name") or asset_id),
            symbol=str(record.get("symbol") or ""),
            image=str(record.get("image") or ""),
            current_price=_number(record.get("current_price")),
            market_cap=_number(record.get("market_cap")),
            total_volume=_number(record.get("total_volume")),
            price_change_pct_24h=_number(pct_24h),
            price_change_pct_7d=_number(pct_7d),
            sparkline=tuple(float(p) for p in sparkline if p is not None),
        )

    def quote(self) -> PriceQuote:
        return PriceQuote(
            current_price=self.current_price or 0.0,
            price_change_pct_24h=self.price_change_pct_24h or 0.0,
            price_change_pct_7d=self.price_change_pct_7d or 0.0,
        )

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "image": self.image,
            "current_price": self.current_price,
            "market_cap": self.market_cap,
            "total_volume": self.total_volume,
            "price_change_percentage_24h": self.price_change_pct_24h,
            "price_change_percentage_7d": self.price_change_pct_7d,
            "sparkline": list(self.sparkline),
        }


@dataclass(frozen=True, slots=True)
class PageResult:
    """Outcome of fetching one page through the cache.

    ``stale_error`` is set when the upstream fetch failed and ``assets`` came
    from an expired cache entry instead.
    """

    assets: list[AssetSnapshot]
    from_cache: bool = False
    stale_error: Exception | None = None

    @property
    def is_stale(self) -> bool:
        return self.stale_error is not None
