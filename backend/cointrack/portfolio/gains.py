"""Portfolio returns over 24h, 7d and since purchase."""

from __future__ import annotations

from collections.abc import Sequence

from .models import AssetPosition, Timeframe, TimeframeGain


def percent_of(part: float, whole: float) -> float | None:
    """``part / whole * 100``, or None when ``whole`` is 0."""
    if whole == 0:
        return None
    return part / whole * 100


def calculate_gain(positions: Sequence[AssetPosition], timeframe: Timeframe) -> TimeframeGain:
    """Absolute and percentage gain of the whole portfolio over ``timeframe``.

    ``total`` is P&L against cost basis. ``24h``/``7d`` attribute each
    position's current value times its period price change, so the
    percentage is relative to current value, not cost.
    """
    total_value = sum(p.current_value for p in positions)

    if timeframe is Timeframe.TOTAL:
        total_cost = sum(p.total_value for p in positions)
        total_pnl = sum(p.pnl for p in positions)
        return TimeframeGain(value=total_pnl, percentage=percent_of(total_pnl, total_cost))

    change = sum(p.current_value * (p.price_change_pct(timeframe) / 100) for p in positions)
    return TimeframeGain(value=change, percentage=percent_of(change, total_value))


def calculate_all_gains(positions: Sequence[AssetPosition]) -> dict[Timeframe, TimeframeGain]:
    return {tf: calculate_gain(positions, tf) for tf in Timeframe}
