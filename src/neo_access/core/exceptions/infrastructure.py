"""Infrastructure exceptions for neo-access.

Exceptions raised by the external cache and the authoritative store.
"""

from .base import NeoAccessError


# Cache Errors
class CacheError(NeoAccessError):
    """Base class for cache-related errors."""
    category = "cache"


class CacheConnectionError(CacheError):
    """Raised when cache connection fails."""
    pass


class CacheSerializationError(CacheError):
    """Raised when cache value serialization/deserialization fails."""
    pass


# Store Errors
class StoreError(NeoAccessError):
    """Raised when the authoritative store fails to read or write."""
    category = "store"
