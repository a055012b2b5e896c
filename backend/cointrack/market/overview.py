"""Market-wide figures derived from the merged asset list."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .models import AssetSnapshot

TOP_GAINERS_LIMIT = 8


@dataclass(frozen=True, slots=True)
class StablecoinStats:
    market_cap: float
    change_24h: float | None
    chart: tuple[float, ...] = ()


@dataclass(frozen=True, slots=True)
class MarketOverview:
    total_market_cap: float
    change_24h: float | None  # Market-cap weighted; None when the total cap is 0
    chart: tuple[float, ...] = ()  # Sparkline of the first (largest) asset
    tether: StablecoinStats | None = None
    top_gainers: list[AssetSnapshot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_market_cap": self.total_market_cap,
            "change_24h": self.change_24h,
            "chart": list(self.chart),
            "tether": (
                {
                    "market_cap": self.tether.market_cap,
                    "change_24h": self.tether.change_24h,
                    "chart": list(self.tether.chart),
                }
                if self.tether
                else None
            ),
            "top_gainers": [a.to_dict() for a in self.top_gainers],
        }


def top_gainers(assets: Sequence[AssetSnapshot], limit: int = TOP_GAINERS_LIMIT) -> list[AssetSnapshot]:
    """Assets with the largest 24h change, best first. Unknown changes count as 0."""
    ranked = sorted(assets, key=lambda a: a.price_change_pct_24h or 0.0, reverse=True)
    return ranked[:limit]


def _find_tether(assets: Sequence[AssetSnapshot]) -> AssetSnapshot | None:
    for asset in assets:
        if asset.id == "tether" or asset.symbol.lower() == "usdt":
            return asset
    return None


def summarize_market(assets: Sequence[AssetSnapshot]) -> MarketOverview | None:
    """Overview of the list, or None when there is nothing to summarize."""
    if not assets:
        return None

    total_cap = sum(a.market_cap or 0.0 for a in assets)
    weighted = sum((a.price_change_pct_24h or 0.0) * (a.market_cap or 0.0) / 100 for a in assets)
    change_24h = weighted / total_cap * 100 if total_cap else None

    tether = _find_tether(assets)
    return MarketOverview(
        total_market_cap=total_cap,
        change_24h=change_24h,
        chart=assets[0].sparkline,
        tether=(
            StablecoinStats(
                market_cap=tether.market_cap or 0.0,
                change_24h=tether.price_change_pct_24h,
                chart=tether.sparkline,
            )
            if tether
            else None
        ),
        top_gainers=top_gainers(assets),
    )
