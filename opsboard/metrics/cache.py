"""
TTL Result Cache

Explicit short-lived cache for computed payloads. Callers own the instance
and pass the key and TTL, so nothing leaks between tests or tenants.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Key -> value cache where entries expire after `ttl_seconds`."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    async def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], Awaitable[Any]],
        force_refresh: bool = False
    ) -> Any:
        """Cached value for key, computing and storing it on a miss."""
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                return cached

        value = await compute()
        self.set(key, value)
        return value

    def __len__(self) -> int:
        return len(self._entries)
