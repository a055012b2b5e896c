"""Duplicate-free, sort-consistent collection of assets assembled from pages."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .models import AssetSnapshot, SortDirection, SortKey, SortOrder


def _or_zero(value: float | None) -> float:
    return value if value is not None else 0.0


# One comparator per sort key; missing figures sort as 0
COMPARATORS: dict[SortKey, Callable[[AssetSnapshot], float]] = {
    SortKey.MARKET_CAP: lambda a: _or_zero(a.market_cap),
    SortKey.TOTAL_VOLUME: lambda a: _or_zero(a.total_volume),
    SortKey.CURRENT_PRICE: lambda a: _or_zero(a.current_price),
    SortKey.PRICE_CHANGE_24H: lambda a: _or_zero(a.price_change_pct_24h),
    SortKey.PRICE_CHANGE_7D: lambda a: _or_zero(a.price_change_pct_7d),
}


def sort_assets(assets: Iterable[AssetSnapshot], order: SortOrder) -> list[AssetSnapshot]:
    """Stable sort by the comparator for ``order.key``."""
    return sorted(
        assets,
        key=COMPARATORS[order.key],
        reverse=order.direction is SortDirection.DESC,
    )


def merge_assets(
    existing: Iterable[AssetSnapshot],
    incoming: Iterable[AssetSnapshot],
    order: SortOrder,
) -> list[AssetSnapshot]:
    """Union of two asset lists keyed by id, re-sorted by ``order``.

    A record whose id is already present replaces the old one (last seen
    wins); new ids are appended before sorting.
    """
    by_id: dict[str, AssetSnapshot] = {}
    for asset in existing:
        by_id[asset.id] = asset
    for asset in incoming:
        by_id[asset.id] = asset
    return sort_assets(by_id.values(), order)


class MergeSet:
    """Single owner of the merged asset list.

    Every mutation is a plain synchronous method, so a merge is one atomic
    read-modify-write step with respect to other tasks on the event loop.
    """

    def __init__(self, order: SortOrder | None = None) -> None:
        self._order = order or SortOrder()
        self._assets: list[AssetSnapshot] = []
        self._version: int = 0

    @property
    def order(self) -> SortOrder:
        return self._order

    @property
    def assets(self) -> list[AssetSnapshot]:
        """Snapshot of the merged list. Returns a shallow copy."""
        return list(self._assets)

    @property
    def version(self) -> int:
        return self._version

    def replace(self, assets: Iterable[AssetSnapshot]) -> list[AssetSnapshot]:
        """Drop everything and start over from ``assets`` (a fresh page 1)."""
        self._assets = merge_assets((), assets, self._order)
        self._version += 1
        return self.assets

    def merge(self, incoming: Iterable[AssetSnapshot]) -> list[AssetSnapshot]:
        self._assets = merge_assets(self._assets, incoming, self._order)
        self._version += 1
        return self.assets

    def set_order(self, order: SortOrder) -> None:
        """Switch the active order and re-sort what is already held."""
        if order == self._order:
            return
        self._order = order
        self._assets = sort_assets(self._assets, order)
        self._version += 1

    def get(self, asset_id: str) -> AssetSnapshot | None:
        for asset in self._assets:
            if asset.id == asset_id:
                return asset
        return None

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: str) -> bool:
        return any(a.id == asset_id for a in self._assets)
