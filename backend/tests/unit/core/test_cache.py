"""
Tests for TTLCache.
"""

import pytest

from bizledger.core.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_seconds=60, clock=clock)


class TestTTLCache:
    def test_get_before_and_after_expiry(self, cache, clock):
        cache.set("org:1", ["a"])
        clock.now += 59
        assert cache.get("org:1") == ["a"]
        clock.now += 1
        assert cache.get("org:1") is None
        assert len(cache) == 0

    def test_invalidate(self, cache):
        cache.set(1, "x")
        cache.invalidate(1)
        cache.invalidate(2)
        assert cache.get(1) is None

    def test_clear(self, cache):
        cache.set(1, "x")
        cache.set(2, "y")
        cache.clear()
        assert len(cache) == 0

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            TTLCache(ttl_seconds=0)

    @pytest.mark.asyncio
    async def test_get_or_load_calls_loader_once_per_window(self, cache, clock):
        calls = []

        async def loader():
            calls.append(clock.now)
            return [len(calls)]

        assert await cache.get_or_load(5, loader) == [1]
        assert await cache.get_or_load(5, loader) == [1]
        clock.now += 61
        assert await cache.get_or_load(5, loader) == [2]
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, cache):
        async def load_a():
            return "a"

        async def load_b():
            return "b"

        assert await cache.get_or_load(1, load_a) == "a"
        assert await cache.get_or_load(2, load_b) == "b"
        cache.invalidate(1)
        assert cache.get(2) == "b"
