"""Read-through cache of entity snapshots keyed by ``(kind, entity_id)``.

Snapshots hold an entity's display fields and its counters, never anything
viewer-specific. Every mutation invalidates the affected keys after its
transaction commits, so concurrently rendered views of the same entity read
the same values instead of drifting apart.

Usage:
    cache = get_view_cache()
    data = cache.get_or_load("projects", project_id, lambda: load(project_id))
    cache.invalidate("projects", project_id)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Any

from devhub.core.settings import settings

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]


class ViewCache:
    """Thread-safe LRU cache with a per-entry time-to-live.

    Loads run outside the lock. An invalidation that lands while a load for
    the same key is in flight bumps that key's generation, and the loaded
    snapshot is then returned to its caller but not stored.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (expires_at, value)
        self._entries: OrderedDict[CacheKey, tuple[float, Any]] = OrderedDict()
        # Only keys with a load in flight are tracked here.
        self._loading: dict[CacheKey, int] = {}
        self._generations: dict[CacheKey, int] = {}
        self._epoch = 0
        self.hits = 0
        self.misses = 0

    def _lookup(self, key: CacheKey) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def _store(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = (self._clock() + self._ttl, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def _bump(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        if key in self._loading:
            self._generations[key] = self._generations.get(key, 0) + 1

    def get(self, kind: str, entity_id: str) -> Any | None:
        with self._lock:
            return self._lookup((kind, entity_id))

    def put(self, kind: str, entity_id: str, value: Any) -> None:
        with self._lock:
            self._store((kind, entity_id), value)

    def get_or_load(self, kind: str, entity_id: str, loader: Callable[[], Any]) -> Any:
        """Return the cached snapshot, calling ``loader`` on a miss.

        ``None`` results are not cached so a not-found entity is re-read next
        time. Neither is a result whose key was invalidated during the load.
        """
        key = (kind, entity_id)
        with self._lock:
            cached = self._lookup(key)
            if cached is not None:
                self.hits += 1
                return cached
            self.misses += 1
            self._loading[key] = self._loading.get(key, 0) + 1
            started = (self._epoch, self._generations.get(key, 0))

        value = None
        try:
            value = loader()
        finally:
            with self._lock:
                current = (self._epoch, self._generations.get(key, 0))
                if value is not None and current == started:
                    self._store(key, value)
                elif value is not None:
                    logger.debug("Discarded stale load of %s/%s", kind, entity_id)
                remaining = self._loading[key] - 1
                if remaining:
                    self._loading[key] = remaining
                else:
                    del self._loading[key]
                    self._generations.pop(key, None)
        return value

    def invalidate(self, kind: str, entity_id: str) -> None:
        with self._lock:
            self._bump((kind, entity_id))
        logger.debug("Invalidated %s/%s", kind, entity_id)

    def invalidate_many(self, keys: Iterable[CacheKey]) -> None:
        with self._lock:
            for key in keys:
                self._bump(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._epoch += 1
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


_VIEW_CACHE = ViewCache(settings.view_cache_ttl_seconds, settings.view_cache_max_entries)


def get_view_cache() -> ViewCache:
    """Return the process-wide view cache."""
    return _VIEW_CACHE
