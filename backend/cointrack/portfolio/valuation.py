"""Group purchases into positions and value them at current prices."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence

from ..market.models import PriceQuote, SortDirection
from .gains import calculate_all_gains, percent_of
from .models import (
    AssetPosition,
    PortfolioSnapshot,
    PositionSortKey,
    Purchase,
    PurchaseSortKey,
)


def value_positions(
    purchases: Iterable[Purchase],
    prices: Mapping[str, PriceQuote],
) -> list[AssetPosition]:
    """One AssetPosition per asset id, in order of first purchase.

    An asset without a quote is valued at its first purchase price with no
    24h/7d movement. Positions whose total amount is not positive are dropped.
    """
    groups: dict[str, list[Purchase]] = {}
    for purchase in purchases:
        groups.setdefault(purchase.asset_id, []).append(purchase)

    positions = []
    for asset_id, group in groups.items():
        total_amount = sum(p.amount for p in group)
        if total_amount <= 0:
            continue
        total_value = sum(p.amount * p.price for p in group)

        first = group[0]
        quote = prices.get(asset_id) or PriceQuote(current_price=first.price)
        current_value = total_amount * quote.current_price
        pnl = current_value - total_value

        positions.append(
            AssetPosition(
                asset_id=asset_id,
                name=first.name or asset_id,
                symbol=first.symbol,
                image=first.image,
                purchases=tuple(group),
                total_amount=total_amount,
                total_value=total_value,
                average_price=total_value / total_amount,
                current_price=quote.current_price,
                current_value=current_value,
                pnl=pnl,
                pnl_pct=percent_of(pnl, total_value),
                price_change_pct_24h=quote.price_change_pct_24h,
                price_change_pct_7d=quote.price_change_pct_7d,
            )
        )
    return positions


def summarize_portfolio(positions: Sequence[AssetPosition]) -> PortfolioSnapshot:
    total_value = sum(p.current_value for p in positions)
    total_cost = sum(p.total_value for p in positions)
    total_pnl = sum(p.pnl for p in positions)
    return PortfolioSnapshot(
        total_value=total_value,
        total_cost=total_cost,
        total_pnl=total_pnl,
        total_pnl_pct=percent_of(total_pnl, total_cost),
        gains=calculate_all_gains(positions),
    )


POSITION_COMPARATORS: dict[PositionSortKey, Callable[[AssetPosition], float]] = {
    PositionSortKey.CURRENT_VALUE: lambda p: p.current_value,
    PositionSortKey.PNL: lambda p: p.pnl,
    PositionSortKey.PNL_PCT: lambda p: p.pnl_pct if p.pnl_pct is not None else 0.0,
    PositionSortKey.TOTAL_AMOUNT: lambda p: p.total_amount,
    PositionSortKey.AVERAGE_PRICE: lambda p: p.average_price,
}

# ISO-8601 dates order correctly as strings
PURCHASE_COMPARATORS: dict[PurchaseSortKey, Callable[[Purchase], str | float]] = {
    PurchaseSortKey.DATE: lambda p: p.date,
    PurchaseSortKey.AMOUNT: lambda p: p.amount,
    PurchaseSortKey.PRICE: lambda p: p.price,
}


def sort_positions(
    positions: Iterable[AssetPosition],
    key: PositionSortKey = PositionSortKey.CURRENT_VALUE,
    direction: SortDirection = SortDirection.DESC,
) -> list[AssetPosition]:
    return sorted(positions, key=POSITION_COMPARATORS[key], reverse=direction is SortDirection.DESC)


def sort_purchases(
    purchases: Iterable[Purchase],
    key: PurchaseSortKey = PurchaseSortKey.DATE,
    direction: SortDirection = SortDirection.DESC,
) -> list[Purchase]:
    return sorted(purchases, key=PURCHASE_COMPARATORS[key], reverse=direction is SortDirection.DESC)
