"""Tests for the analytics cache"""

import threading
import time

import pytest

from queue_analytics.cache import AnalyticsCache, cache_key


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return AnalyticsCache(default_ttl=300, clock=clock)


class TestCacheKey:
    """Test key construction"""

    def test_equivalent_dates_share_key(self):
        a = cache_key("shop-1", "2024-03-13T00:00:00Z", "2024-03-13T23:59:59Z")
        b = cache_key("shop-1", "2024-03-13T02:00:00+02:00", "2024-03-13T23:59:59.000+00:00")
        assert a == b
        assert a.startswith("shop-1_2024-03-13T00:00:00.000")

    def test_shops_do_not_collide(self):
        assert cache_key("a", "2024-03-13", "2024-03-14") != cache_key(
            "b", "2024-03-13", "2024-03-14"
        )


class TestAnalyticsCache:
    """Test TTL behaviour"""

    def test_get_missing(self, cache):
        assert cache.get("missing") is None
        assert cache.misses == 1

    def test_set_and_get(self, cache):
        cache.set("k", {"v": 1})
        assert cache.get("k") == {"v": 1}
        assert cache.hits == 1

    def test_entry_expires(self, cache, clock):
        cache.set("k", "value")
        clock.advance(299)
        assert cache.get("k") == "value"
        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_custom_ttl(self, cache, clock):
        cache.set("k", "value", ttl_seconds=10)
        clock.advance(11)
        assert cache.get("k") is None

    def test_set_replaces_entry(self, cache):
        cache.set("k", "old")
        cache.set("k", "new")
        assert cache.get("k") == "new"
        assert len(cache) == 1

    def test_delete_and_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0
        assert cache.stats()["hits"] == 0

    def test_invalid_ttl(self, cache):
        with pytest.raises(ValueError):
            AnalyticsCache(default_ttl=0)
        with pytest.raises(ValueError):
            cache.set("k", "v", ttl_seconds=-1)

    def test_expired_entries_swept_on_write(self, cache, clock):
        """Test keys of past periods do not pile up when never read again"""
        for day in range(1000):
            cache.set(f"shop-1_day-{day}", day)
            clock.advance(400)

        assert len(cache) == 1
        assert cache.get("shop-1_day-999") == 999

    def test_live_entries_survive_sweep(self, cache, clock):
        cache.set("old", 1, ttl_seconds=10)
        cache.set("fresh", 2)
        clock.advance(20)
        cache.set("new", 3)

        assert len(cache) == 2
        assert cache.get("fresh") == 2
        assert cache.get("old") is None

    def test_stats(self, cache):
        cache.set("k", 1)
        cache.get("k")
        cache.get("other")
        stats = cache.stats()
        assert stats == {
            "entries": 1, "in_flight": 0, "hits": 1, "misses": 1, "hit_rate": 0.5,
        }


class TestGetOrCompute:
    """Test read-through computation"""

    def test_computes_once_within_ttl(self, cache, clock):
        calls = []

        def compute():
            calls.append(1)
            return len(calls)

        assert cache.get_or_compute("k", compute) == 1
        assert cache.get_or_compute("k", compute) == 1
        clock.advance(301)
        assert cache.get_or_compute("k", compute) == 2

    def test_failed_compute_stores_nothing(self, cache):
        def compute():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.get_or_compute("k", compute)
        assert len(cache) == 0
        assert cache.stats()["in_flight"] == 0

    def test_rolling_keys_stay_bounded(self, clock):
        cache = AnalyticsCache(default_ttl=1, clock=clock)
        for i in range(1000):
            cache.get_or_compute(f"shop-1_range-{i}", lambda: "snapshot")
            clock.advance(10)

        stats = cache.stats()
        assert stats["entries"] == 1
        assert stats["in_flight"] == 0

    def test_single_flight(self):
        """Test concurrent misses for one key compute once"""
        cache = AnalyticsCache(default_ttl=300)
        calls = []
        barrier = threading.Barrier(5)
        results = []

        def compute():
            calls.append(1)
            time.sleep(0.05)
            return "value"

        def worker():
            barrier.wait()
            results.append(cache.get_or_compute("k", compute))

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert results == ["value"] * 5
        assert len(calls) == 1
        assert cache.stats()["in_flight"] == 0

    def test_without_single_flight(self, clock):
        cache = AnalyticsCache(default_ttl=300, single_flight=False, clock=clock)
        assert cache.get_or_compute("k", lambda: 42) == 42
        assert cache.get("k") == 42
