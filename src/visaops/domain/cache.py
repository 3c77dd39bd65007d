"""Cache invalidation for read views that depend on a country's configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .ports.cache import QueryCache, QueryKey

log = getLogger(__name__)

ADMIN_COUNTRIES: Final[str] = "admin_countries"
COUNTRIES: Final[str] = "countries"
COUNTRY: Final[str] = "country"
COUNTRY_DETAIL: Final[str] = "country_detail"
COUNTRY_VISA_PACKAGE: Final[str] = "country_visa_package"
DOCUMENTS: Final[str] = "documents"
POPULAR_DESTINATIONS: Final[str] = "popular_destinations"

GLOBAL_VIEWS: Final[tuple[str, ...]] = (
    ADMIN_COUNTRIES,
    COUNTRY_DETAIL,
    COUNTRIES,
    COUNTRY_VISA_PACKAGE,
    DOCUMENTS,
    POPULAR_DESTINATIONS,
)
COUNTRY_VIEWS: Final[tuple[str, ...]] = (
    COUNTRY,
    COUNTRY_DETAIL,
    DOCUMENTS,
    COUNTRY_VISA_PACKAGE,
)


def stale_keys(country_id: str) -> tuple[QueryKey, ...]:
    """Every read-view key touched by a change to ``country_id``.

    Deliberately broad: global aggregates are invalidated along with the
    country-scoped views.
    """

    keys: list[QueryKey] = [(view,) for view in GLOBAL_VIEWS]
    if country_id:
        keys.extend((view, country_id) for view in COUNTRY_VIEWS)
    return tuple(keys)


@dataclass(slots=True)
class QueryKeyBroadcaster:
    """Fans ``invalidate(country_id)`` out to each registered read-view cache."""

    caches: list[QueryCache] = field(default_factory=list["QueryCache"])

    def subscribe(self, cache: QueryCache) -> None:
        self.caches.append(cache)

    def invalidate(self, country_id: str) -> None:
        keys = stale_keys(country_id)
        log.debug("Invalidating %d read views for country %s", len(keys), country_id)
        for cache in self.caches:
            for key in keys:
                cache.invalidate(key)


class NullBroadcaster:
    def invalidate(self, country_id: str) -> None:
        _ = country_id


@dataclass(slots=True)
class _Entry:
    value: object
    stale: bool = False


@dataclass(slots=True)
class InMemoryQueryCache:
    """Minimal read-view cache keyed by query keys.

    Invalidating a key marks it and every longer key sharing it as a prefix as
    stale, so ``("documents",)`` also covers ``("documents", "<country>")``.
    """

    _entries: dict[QueryKey, _Entry] = field(default_factory=dict["QueryKey", _Entry])

    def set(self, key: QueryKey, value: object) -> None:
        self._entries[key] = _Entry(value)

    def get(self, key: QueryKey) -> object | None:
        entry = self._entries.get(key)
        return None if entry is None else entry.value

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def invalidate(self, key: QueryKey) -> None:
        for cached_key in self._matching(key):
            self._entries[cached_key].stale = True

    def stale(self) -> Iterable[QueryKey]:
        return [key for key, entry in self._entries.items() if entry.stale]

    def _matching(self, prefix: QueryKey) -> list[QueryKey]:
        size = len(prefix)
        return [key for key in self._entries if key[:size] == prefix]
