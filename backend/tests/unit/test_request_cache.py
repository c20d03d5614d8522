"""Tests for the in-process TTL RequestCache."""
import pytest

from backend.services.shared.request_cache import RequestCache
from backend.tests.factories import FakeClock


@pytest.fixture
def cache(clock):
    return RequestCache(max_size=3, default_ttl_sec=10, clock=clock)


class TestRequestCache:
    def test_set_and_get(self, cache):
        cache.set("a", {"plan": 1})
        assert cache.get("a") == {"plan": 1}
        assert cache.has("a")

    def test_missing_key(self, cache):
        assert cache.get("nope") is None
        assert not cache.has("nope")

    def test_expires_after_ttl(self, cache, clock):
        cache.set("a", 1)
        clock.advance(11)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_custom_ttl(self, cache, clock):
        cache.set("a", 1, ttl_sec=100)
        clock.advance(50)
        assert cache.get("a") == 1

    def test_evicts_oldest_when_full(self, cache, clock):
        for key in ("a", "b", "c"):
            cache.set(key, key)
            clock.advance(1)
        cache.set("d", "d")
        assert cache.get("a") is None
        assert cache.get("d") == "d"
        assert len(cache) == 3

    def test_overwrite_does_not_evict(self, cache):
        for key in ("a", "b", "c"):
            cache.set(key, key)
        cache.set("a", "again")
        assert len(cache) == 3
        assert cache.get("b") == "b"

    def test_delete_and_clear(self, cache):
        cache.set("a", 1)
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_stats_counts_hits(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        stats = cache.stats()
        assert stats == {"size": 1, "max_size": 3, "total_hits": 2}

    def test_make_key_is_stable_and_order_sensitive(self):
        k1 = RequestCache.make_key("prompt", {"b": 1, "a": 2})
        k2 = RequestCache.make_key("prompt", {"a": 2, "b": 1})
        k3 = RequestCache.make_key("other", {"a": 2, "b": 1})
        assert k1 == k2
        assert k1 != k3

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            RequestCache(max_size=0, clock=FakeClock())
