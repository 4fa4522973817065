"""Cache protocols for neo-access.

The registrar is a thin consumer of a key-value cache with TTL. Any backend
that satisfies ``ExternalCache`` can sit behind it.
"""

from abc import abstractmethod
from typing import Protocol, runtime_checkable, Optional, Any


@runtime_checkable
class ExternalCache(Protocol):
    """Protocol for the external key-value cache used by the registrar.

    Values are JSON-compatible structures; backends serialise them and raise
    CacheSerializationError for values that cannot be encoded.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get a value, None on a miss or an expired entry."""
        ...

    @abstractmethod
    async def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value; a missing or non-positive TTL never expires."""
        ...

    @abstractmethod
    async def forget(self, key: str) -> bool:
        """Delete a key and return whether it existed."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry owned by this cache."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that the backend is reachable."""
        ...
