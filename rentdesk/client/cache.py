"""
Explicit query cache for the API client.

Keys are tuples such as ``("reports", "saved")`` or
``("reports", "saved", report_id)``. A key can declare dependents; dropping
a key drops every key that depends on it, transitively, so a mutation only
has to invalidate the key it touched.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, ...]


class QueryCache:
    def __init__(self):
        self._entries: dict[CacheKey, Any] = {}
        self._dependents: dict[CacheKey, set[CacheKey]] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = value

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key``, loading and storing it on a miss.

        A loader that raises stores nothing.
        """
        if key in self._entries:
            return self._entries[key]
        value = await loader()
        self._entries[key] = value
        return value

    def register_dependents(self, key: CacheKey, *dependents: CacheKey) -> None:
        self._dependents.setdefault(key, set()).update(dependents)

    def invalidate(self, key: CacheKey) -> set[CacheKey]:
        """Drop ``key`` and everything depending on it. Returns the keys dropped."""
        dropped: set[CacheKey] = set()
        pending = [key]
        while pending:
            current = pending.pop()
            if current in dropped:
                continue
            dropped.add(current)
            self._entries.pop(current, None)
            pending.extend(self._dependents.get(current, ()))
        logger.debug("Invalidated %d cache key(s) starting at %r", len(dropped), key)
        return dropped

    def clear(self) -> None:
        self._entries.clear()
