"""Memory cache adapter for neo-access."""

import asyncio
import time
import logging
from typing import Any, Optional
from dataclasses import dataclass
from collections import OrderedDict

from ....config.constants import CacheDefaults
from ..entities.config import serialize_value, deserialize_value

logger = logging.getLogger(__name__)


@dataclass
class MemoryCacheEntry:
    """Memory cache entry holding the serialised payload."""
    payload: str
    created_at: float
    expires_at: Optional[float] = None

    @property
    def is_expired(self) -> bool:
        """Check if entry is expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class MemoryAdapter:
    """In-process cache with LRU eviction and TTL support.

    Values are stored JSON-encoded so callers always get a fresh copy and
    the same values round-trip as through the redis adapter.
    """

    def __init__(self, max_size: int = CacheDefaults.MEMORY_MAX_ENTRIES):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got: {max_size}")
        self.max_size = max_size
        self._store: "OrderedDict[str, MemoryCacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            if entry.is_expired:
                del self._store[key]
                logger.debug(f"Memory cache entry expired: {key}")
                return None

            self._store.move_to_end(key)
            payload = entry.payload

        return deserialize_value(key, payload)

    async def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = serialize_value(key, value)
        now = time.time()
        entry = MemoryCacheEntry(
            payload=payload,
            created_at=now,
            expires_at=now + ttl if ttl and ttl > 0 else None,
        )

        async with self._lock:
            self._store.pop(key, None)
            while len(self._store) >= self.max_size:
                evicted, _ = self._store.popitem(last=False)
                logger.debug(f"Evicted memory cache entry: {evicted}")
            self._store[key] = entry

    async def forget(self, key: str) -> bool:
        async with self._lock:
            return self._store.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()

    async def health_check(self) -> bool:
        return True

    async def size(self) -> int:
        """Number of live entries."""
        async with self._lock:
            expired = [key for key, entry in self._store.items() if entry.is_expired]
            for key in expired:
                del self._store[key]
            return len(self._store)
