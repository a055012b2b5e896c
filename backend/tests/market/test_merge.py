"""Tests for asset merging and sorting."""

from cointrack.market.merge import MergeSet, merge_assets, sort_assets
from cointrack.market.models import AssetSnapshot, SortDirection, SortKey, SortOrder


def _asset(asset_id, market_cap=None, price=None, change_24h=None):
    return AssetSnapshot(
        id=asset_id,
        name=asset_id,
        symbol=asset_id,
        market_cap=market_cap,
        current_price=price,
        price_change_pct_24h=change_24h,
    )


CAP_DESC = SortOrder(SortKey.MARKET_CAP, SortDirection.DESC)


class TestMergeAssets:
    """Unit tests for merge_assets / sort_assets."""

    def test_union_sorted_desc(self):
        merged = merge_assets([_asset("a", 10), _asset("b", 5)], [_asset("c", 7)], CAP_DESC)
        assert [a.id for a in merged] == ["a", "c", "b"]

    def test_last_seen_wins(self):
        """An id seen again takes the incoming record."""
        merged = merge_assets([_asset("a", 10, price=1.0)], [_asset("a", 12, price=2.0)], CAP_DESC)
        assert len(merged) == 1
        assert merged[0].current_price == 2.0
        assert merged[0].market_cap == 12

    def test_no_duplicate_ids(self):
        merged = merge_assets(
            [_asset("a", 1), _asset("b", 2)],
            [_asset("b", 3), _asset("a", 4), _asset("b", 5)],
            CAP_DESC,
        )
        assert sorted(a.id for a in merged) == ["a", "b"]

    def test_ascending(self):
        order = SortOrder(SortKey.CURRENT_PRICE, SortDirection.ASC)
        result = sort_assets([_asset("x", price=3.0), _asset("y", price=1.0), _asset("z", price=2.0)], order)
        assert [a.id for a in result] == ["y", "z", "x"]

    def test_missing_figures_sort_as_zero(self):
        order = SortOrder(SortKey.PRICE_CHANGE_24H, SortDirection.DESC)
        result = sort_assets([_asset("neg", change_24h=-5.0), _asset("none"), _asset("pos", change_24h=5.0)], order)
        assert [a.id for a in result] == ["pos", "none", "neg"]

    def test_stable_for_ties(self):
        result = sort_assets([_asset("first", 1), _asset("second", 1)], CAP_DESC)
        assert [a.id for a in result] == ["first", "second"]

    def test_merge_is_order_independent_for_membership(self):
        """Out-of-order page arrival yields the same sorted list."""
        p1 = [_asset("a", 100), _asset("b", 90)]
        p2 = [_asset("c", 80), _asset("d", 70)]
        forward = merge_assets(merge_assets([], p1, CAP_DESC), p2, CAP_DESC)
        backward = merge_assets(merge_assets([], p2, CAP_DESC), p1, CAP_DESC)
        assert forward == backward


class TestMergeSet:
    """Unit tests for the MergeSet owner."""

    def test_empty(self):
        merge_set = MergeSet()
        assert merge_set.assets == []
        assert len(merge_set) == 0
        assert merge_set.order == CAP_DESC

    def test_replace_then_merge(self):
        merge_set = MergeSet()
        merge_set.merge([_asset("old", 1)])
        merge_set.replace([_asset("a", 10)])
        merge_set.merge([_asset("b", 20)])
        assert [a.id for a in merge_set.assets] == ["b", "a"]
        assert "old" not in merge_set

    def test_assets_returns_copy(self):
        merge_set = MergeSet()
        merge_set.replace([_asset("a", 1)])
        merge_set.assets.clear()
        assert len(merge_set) == 1

    def test_set_order_resorts(self):
        merge_set = MergeSet()
        merge_set.replace([_asset("a", 10), _asset("b", 20)])
        merge_set.set_order(SortOrder(SortKey.MARKET_CAP, SortDirection.ASC))
        assert [a.id for a in merge_set.assets] == ["a", "b"]

    def test_version_bumps(self):
        merge_set = MergeSet()
        v0 = merge_set.version
        merge_set.replace([_asset("a", 1)])
        merge_set.merge([_asset("b", 2)])
        merge_set.set_order(CAP_DESC)  # Unchanged order is a no-op
        assert merge_set.version == v0 + 2

    def test_get(self):
        merge_set = MergeSet()
        merge_set.replace([_asset("a", 1)])
        assert merge_set.get("a").market_cap == 1
        assert merge_set.get("missing") is None
