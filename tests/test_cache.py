"""Tests for the in-process cache."""

from __future__ import annotations

import time

import pytest

from dsfrdocs.cache.store import CacheStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheStore:
    return CacheStore(clock=clock, compression_threshold=64)


class TestGetSet:
    """Test basic storage."""

    def test_round_trip_small(self, cache: CacheStore) -> None:
        """Small values are stored uncompressed."""
        assert cache.set("k", {"text": "court"}) is True

        assert cache.get("k") == {"text": "court"}
        assert cache._entries["k"].compressed is False

    def test_round_trip_compressed(self, cache: CacheStore) -> None:
        """Values above the threshold are compressed transparently."""
        value = {"text": "bouton " * 200}
        cache.set("k", value)

        assert cache._entries["k"].compressed is True
        assert cache.get("k") == value

    def test_compression_disabled(self, clock: FakeClock) -> None:
        """Compression can be turned off."""
        cache = CacheStore(clock=clock, compression=False, compression_threshold=1)
        cache.set("k", "x" * 500)

        assert cache._entries["k"].compressed is False

    def test_missing_returns_default(self, cache: CacheStore) -> None:
        """Unknown keys return the default."""
        assert cache.get("nope") is None
        assert cache.get("nope", "fallback") == "fallback"

    def test_overwrite(self, cache: CacheStore) -> None:
        """Setting a key again replaces the value and memory accounting."""
        cache.set("k", "a")
        cache.set("k", "b")

        assert cache.get("k") == "b"
        assert cache.stats()["entries"] == 1
        assert cache.stats()["memoryUsage"] == cache._entries["k"].size_bytes

    def test_unpicklable_value(self, cache: CacheStore) -> None:
        """Values that cannot be serialised are refused."""
        assert cache.set("k", lambda: None) is False
        assert cache.has("k") is False


class TestExpiry:
    """Test TTL handling."""

    def test_expires_after_ttl(self, cache: CacheStore, clock: FakeClock) -> None:
        """Entries disappear once their TTL elapses."""
        cache.set("k", "v", ttl_ms=100)
        clock.advance(99)
        assert cache.get("k") == "v"

        clock.advance(1)
        assert cache.get("k") is None
        assert cache.has("k") is False

    def test_zero_ttl_is_immediately_absent(self, cache: CacheStore) -> None:
        """A zero TTL entry is never visible."""
        cache.set("k", "v", ttl_ms=0)

        assert cache.has("k") is False
        assert cache.get("k") is None

    def test_default_ttl(self, clock: FakeClock) -> None:
        """Entries without a TTL use the default."""
        cache = CacheStore(clock=clock, default_ttl_ms=1000)
        cache.set("k", "v")
        clock.advance(1000)

        assert cache.get("k") is None

    def test_cleanup(self, cache: CacheStore, clock: FakeClock) -> None:
        """Cleanup purges expired entries and reports how many."""
        cache.set("a", 1, ttl_ms=10)
        cache.set("b", 2, ttl_ms=10_000)
        clock.advance(20)

        assert cache.cleanup() == 1
        assert cache.stats()["entries"] == 1


class TestMemoryBudget:
    """Test eviction under memory pressure."""

    def test_oversize_rejected(self, clock: FakeClock) -> None:
        """A value larger than the whole budget is refused."""
        cache = CacheStore(clock=clock, max_memory=100, compression=False)

        assert cache.set("big", "x" * 500) is False
        assert cache.stats()["rejected"] == 1
        assert cache.stats()["entries"] == 0

    def test_evicts_soonest_expiry_first(self, clock: FakeClock) -> None:
        """Entries closest to expiry go first."""
        cache = CacheStore(clock=clock, max_memory=300, compression=False)
        cache.set("short", "x" * 100, ttl_ms=1000)
        cache.set("long", "y" * 100, ttl_ms=60_000)
        cache.set("new", "z" * 100, ttl_ms=30_000)

        assert cache.has("short") is False
        assert cache.has("long") is True
        assert cache.has("new") is True
        assert cache.stats()["evictions"] >= 1

    def test_memory_stays_bounded(self, clock: FakeClock) -> None:
        """Tracked memory never exceeds the budget."""
        cache = CacheStore(clock=clock, max_memory=1000, compression=False)
        for index in range(50):
            cache.set(f"k{index}", "v" * 50)
            assert cache.stats()["memoryUsage"] <= 1000


class TestMaintenance:
    """Test delete, clear and stats."""

    def test_delete(self, cache: CacheStore) -> None:
        """Delete reports whether a key was removed."""
        cache.set("k", 1)

        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert cache.stats()["deletes"] == 1

    def test_clear_all(self, cache: CacheStore) -> None:
        """Clear without a pattern empties the cache."""
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.clear() == 2
        assert cache.stats()["memoryUsage"] == 0

    def test_clear_pattern(self, cache: CacheStore) -> None:
        """Clear with a glob removes matching keys only."""
        cache.set('search:{"q": 1}', 1)
        cache.set('search:{"q": 2}', 2)
        cache.set("colors:{}", 3)

        assert cache.clear("search:*") == 2
        assert cache.has("colors:{}") is True

    def test_stats(self, cache: CacheStore) -> None:
        """Stats track hits, misses and hit rate."""
        cache.set("k", 1)
        cache.get("k")
        cache.get("k")
        cache.get("missing")

        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hitRate"] == pytest.approx(2 / 3)
        assert stats["maxMemory"] == cache.max_memory

    def test_empty_hit_rate(self, cache: CacheStore) -> None:
        """No lookups gives a zero hit rate."""
        assert cache.stats()["hitRate"] == 0.0

    def test_invalid_budget(self) -> None:
        """The memory budget must be positive."""
        with pytest.raises(ValueError):
            CacheStore(max_memory=0)


class TestSweeper:
    """Test the background sweep thread."""

    def test_sweeper_purges_expired(self) -> None:
        """The sweep thread removes expired entries on its own."""
        with CacheStore(cleanup_interval=0.01) as cache:
            cache.set("k", 1, ttl_ms=1)
            deadline = time.monotonic() + 2.0
            while cache._entries and time.monotonic() < deadline:
                time.sleep(0.01)

            assert "k" not in cache._entries

    def test_start_is_idempotent(self) -> None:
        """Starting twice keeps one thread; close stops it."""
        cache = CacheStore(cleanup_interval=0.01)
        cache.start()
        thread = cache._sweeper
        cache.start()

        assert cache._sweeper is thread
        cache.close()
        assert cache._sweeper is None
        assert not thread.is_alive()
