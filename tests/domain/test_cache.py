from __future__ import annotations

from visaops.domain.cache import (
    COUNTRY_VIEWS,
    GLOBAL_VIEWS,
    InMemoryQueryCache,
    NullBroadcaster,
    QueryKeyBroadcaster,
    stale_keys,
)


def test_stale_keys_cover_global_and_country_views() -> None:
    keys = stale_keys("c1")

    assert len(keys) == len(GLOBAL_VIEWS) + len(COUNTRY_VIEWS) == 10
    assert ("admin_countries",) in keys
    assert ("popular_destinations",) in keys
    assert ("country_visa_package", "c1") in keys
    assert ("documents", "c1") in keys


def test_stale_keys_without_country_only_cover_global_views() -> None:
    assert stale_keys("") == tuple((view,) for view in GLOBAL_VIEWS)


def test_broadcaster_marks_subscribed_caches_stale() -> None:
    first = InMemoryQueryCache()
    second = InMemoryQueryCache()
    for cache in (first, second):
        cache.set(("country", "c1"), {"name": "Japan"})
        cache.set(("country", "c2"), {"name": "Peru"})
        cache.set(("countries",), ["c1", "c2"])
    broadcaster = QueryKeyBroadcaster()
    broadcaster.subscribe(first)
    broadcaster.subscribe(second)

    broadcaster.invalidate("c1")

    for cache in (first, second):
        assert cache.is_stale(("country", "c1"))
        assert cache.is_stale(("countries",))
        assert not cache.is_stale(("country", "c2"))


def test_prefix_invalidation_covers_longer_keys() -> None:
    cache = InMemoryQueryCache()
    cache.set(("documents", "c1"), [])
    cache.set(("documents", "c2"), [])

    cache.invalidate(("documents",))

    assert set(cache.stale()) == {("documents", "c1"), ("documents", "c2")}
    assert cache.get(("documents", "c1")) == []


def test_unknown_keys_are_stale() -> None:
    assert InMemoryQueryCache().is_stale(("country", "c1"))


def test_null_broadcaster_accepts_invalidations() -> None:
    NullBroadcaster().invalidate("c1")
