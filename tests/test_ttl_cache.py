"""
Tests for the TTL cache (skinsheet/utils/ttl_cache.py).

A cached None is a value; MISSING means not cached or expired.
"""

from __future__ import annotations

import pytest

from skinsheet.utils.ttl_cache import MISSING, TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(60, name="test", clock=clock)


def test_get_missing_key(cache: TTLCache) -> None:
    assert cache.get("nope") is MISSING
    assert cache.get("nope", "fallback") == "fallback"


def test_set_then_get(cache: TTLCache) -> None:
    cache.set("AWP | Asiimov (Field-Tested)", "https://img/1")

    assert cache.get("AWP | Asiimov (Field-Tested)") == "https://img/1"


def test_cached_none_is_not_missing(cache: TTLCache) -> None:
    cache.set("No Image Item", None)

    assert cache.get("No Image Item") is None
    assert "No Image Item" in cache


def test_entry_valid_at_ttl_boundary(cache: TTLCache, clock: FakeClock) -> None:
    cache.set("k", "v")
    clock.advance(60)

    assert cache.get("k") == "v"


def test_expired_entry_is_evicted(cache: TTLCache, clock: FakeClock) -> None:
    cache.set("k", None)
    clock.advance(61)

    assert cache.get("k") is MISSING
    assert len(cache) == 0
    # Not resurrected by a later read
    assert cache.get("k") is MISSING


def test_set_refreshes_expiry(cache: TTLCache, clock: FakeClock) -> None:
    cache.set("k", "old")
    clock.advance(50)
    cache.set("k", "new")
    clock.advance(50)

    assert cache.get("k") == "new"


def test_instances_are_independent(clock: FakeClock) -> None:
    images = TTLCache(3600, name="image", clock=clock)
    prices = TTLCache(60, name="price", clock=clock)
    images.set("k", "img")
    prices.set("k", "price")
    clock.advance(120)

    assert images.get("k") == "img"
    assert prices.get("k") is MISSING


def test_clear(cache: TTLCache) -> None:
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()

    assert len(cache) == 0


def test_invalid_ttl() -> None:
    with pytest.raises(ValueError):
        TTLCache(0)


def test_missing_is_falsy_singleton() -> None:
    assert not MISSING
    assert repr(MISSING) == "MISSING"
    assert type(MISSING)() is MISSING
