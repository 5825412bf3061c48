"""
Optimistic updates over a keyed query cache.

An update is applied to the cache first so readers see the new value
immediately, then written through to the backing store. If the write fails
the previous cached value is restored and the error is re-raised.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

_MISSING = object()

DEFAULT_MAX_ENTRIES = 1024


class QueryCache:
    """Thread-safe keyed cache of query results.

    Holds at most ``max_entries`` values, evicting the least recently used.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._data: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _store(self, key: Hashable, value: Any) -> None:
        self._data[key] = value
        self._data.move_to_end(key)
        while len(self._data) > self.max_entries:
            self._data.popitem(last=False)

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            self._data.move_to_end(key)
            return self._data[key]

    def contains(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._store(key, value)

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def _swap(self, key: Hashable, value: Any) -> Any:
        with self._lock:
            previous = self._data.get(key, _MISSING)
            if value is _MISSING:
                self._data.pop(key, None)
            else:
                self._store(key, value)
            return previous


class OptimisticUpdate:
    """Result of an optimistic update, able to undo itself."""

    def __init__(self, cache: QueryCache, key: Hashable, applied: Any, previous: Any):
        self.cache = cache
        self.key = key
        self.applied = applied
        self._previous = previous
        self.rolled_back = False

    @property
    def previous(self) -> Optional[Any]:
        """Cached value before the update (None if the key was absent)."""
        return None if self._previous is _MISSING else self._previous

    def rollback(self) -> None:
        """Restore the cached value from before the update. Idempotent."""
        if self.rolled_back:
            return
        self.cache._swap(self.key, self._previous)
        self.rolled_back = True


def apply_optimistic(
    cache: QueryCache,
    key: Hashable,
    new_value: Any,
    write: Callable[[Any], Any],
) -> OptimisticUpdate:
    """
    Apply a value to the cache, then persist it.

    Args:
        cache: Cache holding the current value
        key: Cache key
        new_value: Value to show immediately
        write: Callable persisting the value; its return value, when not
            None, replaces the cached value

    Returns:
        OptimisticUpdate describing the applied change

    Raises:
        Exception: Whatever ``write`` raised, after the cache is rolled back
    """
    previous = cache._swap(key, new_value)
    update = OptimisticUpdate(cache, key, new_value, previous)
    try:
        confirmed = write(new_value)
    except Exception:
        logger.warning(f"Write for {key!r} failed, rolling back cached value")
        update.rollback()
        raise

    if confirmed is not None:
        cache.set(key, confirmed)
        update.applied = confirmed
    return update
