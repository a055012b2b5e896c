"""Tests for ResponseCache."""

from cointrack.market.cache import ResponseCache
from cointrack.market.models import PageKey, SortDirection, SortKey


class TestResponseCache:
    """Unit tests for the ResponseCache."""

    def test_set_and_get(self, clock):
        """Test storing and reading a payload."""
        cache = ResponseCache(clock=clock)
        entry = cache.set("k", ["a"])
        assert entry.key == "k"
        assert entry.timestamp == clock.now
        assert cache.get("k") == ["a"]

    def test_get_unknown(self, clock):
        cache = ResponseCache(clock=clock)
        assert cache.get("nope") is None
        assert cache.get_stale("nope") is None

    def test_fresh_within_ttl(self, clock):
        """A read just inside the TTL is still a hit."""
        cache = ResponseCache(ttl=30.0, clock=clock)
        cache.set("k", ["a"])
        clock.advance(29.9)
        assert cache.get("k") == ["a"]

    def test_expired_at_ttl(self, clock):
        """Hit only while now - timestamp < ttl."""
        cache = ResponseCache(ttl=30.0, clock=clock)
        cache.set("k", ["a"])
        clock.advance(30.0)
        assert cache.get("k") is None

    def test_stale_survives_expiry(self, clock):
        """Expired entries stay available as a fallback."""
        cache = ResponseCache(ttl=30.0, clock=clock)
        cache.set("k", ["a"])
        clock.advance(3600)
        assert cache.get("k") is None
        assert cache.get_stale("k") == ["a"]

    def test_set_refreshes_timestamp(self, clock):
        cache = ResponseCache(ttl=30.0, clock=clock)
        cache.set("k", ["old"])
        clock.advance(40)
        cache.set("k", ["new"])
        assert cache.get("k") == ["new"]

    def test_version_increments(self, clock):
        """Test that version counter increments."""
        cache = ResponseCache(clock=clock)
        v0 = cache.version
        cache.set("k", 1)
        assert cache.version == v0 + 1
        cache.clear()
        assert cache.version == v0 + 2
        assert len(cache) == 0

    def test_len_and_contains(self, clock):
        """__contains__ only reports fresh entries; __len__ counts all."""
        cache = ResponseCache(ttl=10.0, clock=clock)
        cache.set("a", 1)
        clock.advance(11)
        cache.set("b", 2)
        assert len(cache) == 2
        assert "b" in cache
        assert "a" not in cache

    def test_sort_order_uses_separate_keys(self, clock):
        """Pages cached under one order are never served for another."""
        cache = ResponseCache(clock=clock)
        desc = PageKey(1, SortKey.MARKET_CAP, SortDirection.DESC)
        asc = PageKey(1, SortKey.MARKET_CAP, SortDirection.ASC)
        cache.set(desc, ["big"])
        assert cache.get(asc) is None
        assert cache.get(desc) == ["big"]
