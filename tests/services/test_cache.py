# tests/services/test_cache.py
"""Tests for the TTL cache used by the data acquisition layer."""

import pytest

from app.services.cache import TTLCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestTTLCache:
    """Tests for TTLCache."""

    def test_set_and_get(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)

        cache.set("a", 1)

        assert cache.get("a") == 1
        assert len(cache) == 1

    def test_missing_key_returns_default(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)

        assert cache.get("missing") is None
        assert cache.get("missing", "fallback") == "fallback"

    def test_entry_expires(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("a", 1)

        clock.advance(59)
        assert cache.get("a") == 1

        clock.advance(1)
        assert cache.get("a") is None

    def test_stale_value_survives_expiry(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("rate", "7.1")

        clock.advance(3600)

        assert cache.get("rate") is None
        assert cache.get_stale("rate") == "7.1"

    def test_lru_eviction(self, clock):
        cache = TTLCache(ttl_seconds=60, max_size=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # "b" is now least recently used

        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_overwrite_refreshes_expiry(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("a", 1)
        clock.advance(50)

        cache.set("a", 2)
        clock.advance(50)

        assert cache.get("a") == 2

    def test_invalidate(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("a", 1)

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert cache.get_stale("a") is None

    def test_purge_expired(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("old", 1)
        clock.advance(30)
        cache.set("new", 2)
        clock.advance(40)

        assert cache.purge_expired() == 1
        assert len(cache) == 1
        assert cache.get("new") == 2

    def test_clear(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("a", 1)

        cache.clear()

        assert len(cache) == 0

    def test_invalid_max_size(self):
        with pytest.raises(ValueError):
            TTLCache(ttl_seconds=60, max_size=0)
