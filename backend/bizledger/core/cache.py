"""
In-process time-to-live cache.

WHAT: A small keyed cache whose entries expire ``ttl_seconds`` after they
were stored.

WHY: The team member list is read on most screens and changes rarely.
Serving it from memory for a short window avoids a query per page load;
every mutation of team membership invalidates the organization's entry
explicitly, so the TTL only bounds staleness from other processes.

HOW: Entries are stored as (expires_at, value). The clock is injectable
so tests can advance time without sleeping.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Keyed cache with per-entry expiry."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for ``key``, calling ``loader`` on a miss.

        Args:
            key: Cache key
            loader: Zero-argument coroutine function producing the fresh value

        Returns:
            Cached or freshly loaded value
        """
        value = self.get(key)
        if value is not None:
            return value
        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
