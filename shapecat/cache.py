"""Single-key in-memory cache for the discovered catalog."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from loguru import logger

from shapecat.types import Catalog

CATALOG_CACHE_KEY: Final[str] = "types"

log = logger.bind(component="cache")


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Catalog
    created: float


class CatalogCache:
    """Serves the last discovered catalog or runs one serialized refresh.

    A single lock covers lookup and refresh, so concurrent callers on a cold
    cache wait for the in-flight refresh instead of starting their own.
    Only complete catalogs returned by a successful refresh are stored.

    Example:
        cache = CatalogCache(ttl=timedelta(minutes=5))
        catalog = cache.get_or_refresh(lambda: merge(fetcher.fetch_all()))
    """

    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._data: dict[str, _Entry] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of catalogs stored so far."""
        return self._generation

    def _get(self, key: str) -> Catalog | None:
        entry = self._data.get(key)
        if entry is None:
            return None

        if self._clock() - entry.created >= self.ttl.total_seconds():
            del self._data[key]
            return None

        return entry.value

    def _set(self, key: str, value: Catalog) -> None:
        self._generation += 1
        self._data[key] = _Entry(value=value, created=self._clock())

    def get_or_refresh(self, refresh: Callable[[], Catalog]) -> Catalog:
        """Return the cached catalog, refreshing it first when absent or expired.

        Errors raised by ``refresh`` propagate and leave the cache empty.
        """
        with self._lock:
            cached = self._get(CATALOG_CACHE_KEY)
            if cached is not None:
                return cached

            log.debug("Catalog cache miss, refreshing")
            catalog = refresh()
            self._set(CATALOG_CACHE_KEY, catalog)
            log.bind(generation=self._generation).debug(f"Cached catalog with {len(catalog)} entries")
            return catalog

    def peek(self) -> Catalog | None:
        """Cached catalog without triggering a refresh."""
        with self._lock:
            return self._get(CATALOG_CACHE_KEY)

    def invalidate(self) -> None:
        with self._lock:
            self._data.pop(CATALOG_CACHE_KEY, None)
