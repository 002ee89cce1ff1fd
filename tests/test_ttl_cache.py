from __future__ import annotations

from pool_pricing.infrastructure.cache.ttl_cache import TtlCache


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TtlCache(default_ttl_seconds=10, clock=clock)
    cache.set("a", 1)

    clock.now = 9.9
    assert cache.get("a") == 1
    clock.now = 10
    assert cache.get("a") is None


def test_zero_ttl_disables_caching():
    cache = TtlCache(default_ttl_seconds=0, clock=FakeClock())
    cache.set("a", 1)
    assert cache.get("a") is None


def test_delete_prefix_only_touches_matching_keys():
    cache = TtlCache(clock=FakeClock())
    cache.set("price-history:0xp:1d:0", "x")
    cache.set("price-history:0xp:1w:1", "y")
    cache.set("price-history:0xq:1d:0", "z")

    assert cache.delete_prefix("price-history:0xp:") == 2
    assert cache.get("price-history:0xq:1d:0") == "z"

    cache.clear()
    assert cache.get("price-history:0xq:1d:0") is None
