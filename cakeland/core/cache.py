"""
Query cache keyed by query identity, invalidated by mutation events.

Reads go through ``query_cache.get_or_load(key, loader)`` where ``key`` is a
tuple naming the query and its parameters, e.g. ``("admin-coupons",)`` or
``("products", search, page, limit)``. Writes never touch the cache directly:
they publish an event on ``mutation_events`` and the subscriptions registered
at the bottom of this module drop every key under the matching prefix.

Only detached values (pydantic models, plain data) may be cached. ORM
instances are bound to a request-scoped session and must not outlive it.
"""
import threading
import time
from collections import defaultdict
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import structlog

from cakeland.core.config import settings

logger = structlog.get_logger()

CacheKey = Tuple[Hashable, ...]

COUPONS_CHANGED = "coupons.changed"
PRODUCTS_CHANGED = "products.changed"

ADMIN_COUPONS_KEY: CacheKey = ("admin-coupons",)
PRODUCTS_KEY: CacheKey = ("products",)


class QueryCache:
    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}
        # Bumped on every invalidation; loads that straddle a bump are not stored.
        self._generation = 0
        self._lock = threading.RLock()

    def _expired(self, stored_at: float) -> bool:
        if self._ttl is None:
            return False
        return self._clock() - stored_at > self._ttl

    def get(self, key: CacheKey, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            stored_at, value = entry
            if self._expired(stored_at):
                del self._entries[key]
                return default
            return value

    def set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_load(self, key: CacheKey, loader: Callable[[], Any]) -> Any:
        """Return the cached value for ``key`` or run ``loader`` and cache its result.

        The loader runs outside the lock so a slow query does not block
        unrelated readers. A result loaded while an invalidation happened is
        returned to its caller but not cached.
        """
        missing = object()
        with self._lock:
            value = self.get(key, missing)
            generation = self._generation
        if value is not missing:
            return value

        value = loader()
        with self._lock:
            if self._generation == generation:
                self.set(key, value)
            else:
                logger.debug("query_cache_load_discarded", key=list(key))
        return value

    def invalidate(self, prefix: CacheKey) -> int:
        """Drop every key that starts with ``prefix``. Returns the number dropped."""
        size = len(prefix)
        with self._lock:
            self._generation += 1
            stale = [key for key in self._entries if key[:size] == prefix]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        missing = object()
        return self.get(key, missing) is not missing

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class MutationEvents:
    """Minimal observer registry: writers publish, caches subscribe."""

    def __init__(self):
        self._handlers: Dict[str, List[Callable[..., None]]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event: str, handler: Callable[..., None]) -> None:
        with self._lock:
            self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable[..., None]) -> None:
        with self._lock:
            if handler in self._handlers.get(event, []):
                self._handlers[event].remove(handler)

    def publish(self, event: str, **payload: Any) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event, []))
        logger.debug("mutation_event_published", mutation_event=event, handlers=len(handlers), **payload)
        for handler in handlers:
            handler(**payload)


query_cache = QueryCache(ttl_seconds=settings.QUERY_CACHE_TTL_SECONDS or None)
mutation_events = MutationEvents()


def _invalidate_on(prefix: CacheKey) -> Callable[..., None]:
    def handler(**payload: Any) -> None:
        dropped = query_cache.invalidate(prefix)
        logger.debug("query_cache_invalidated", prefix=list(prefix), dropped=dropped)

    return handler


mutation_events.subscribe(COUPONS_CHANGED, _invalidate_on(ADMIN_COUPONS_KEY))
mutation_events.subscribe(PRODUCTS_CHANGED, _invalidate_on(PRODUCTS_KEY))
