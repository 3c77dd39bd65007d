"""Ports for invalidating external read-view caches."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

type QueryKey = tuple[str, ...]


@runtime_checkable
class QueryCache(Protocol):
    """A read-view cache that can mark entries under ``key`` as stale."""

    def invalidate(self, key: QueryKey) -> None: ...


@runtime_checkable
class CacheInvalidationBroadcaster(Protocol):
    """Signals every dependent read view of a country that its data is stale."""

    def invalidate(self, country_id: str) -> None: ...
