"""Tests for the TTL result cache."""

import asyncio

from opsboard.metrics.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(15, clock=clock)
    cache.set("k", {"v": 1})

    clock.now += 14
    assert cache.get("k") == {"v": 1}

    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_invalidate_one_or_all():
    cache = TTLCache(15, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.invalidate()
    assert len(cache) == 0


def test_get_or_compute_reuses_value_until_refresh():
    clock = FakeClock()
    cache = TTLCache(15, clock=clock)
    calls = []

    async def compute():
        calls.append(1)
        return len(calls)

    async def run():
        first = await cache.get_or_compute("summary", compute)
        second = await cache.get_or_compute("summary", compute)
        forced = await cache.get_or_compute("summary", compute, force_refresh=True)
        clock.now += 20
        expired = await cache.get_or_compute("summary", compute)
        return first, second, forced, expired

    assert asyncio.run(run()) == (1, 1, 2, 3)


def test_separate_instances_do_not_share_entries():
    one, two = TTLCache(15), TTLCache(15)
    one.set("k", "v")
    assert two.get("k") is None
