"""Cache feature for neo-access.

- entities/: the ExternalCache protocol, config and JSON serialisation
- adapters/: memory and redis backends
"""

from .entities import ExternalCache, CacheConfig
from .adapters import MemoryAdapter, RedisAdapter
from .factory import create_cache

__all__ = [
    "ExternalCache",
    "CacheConfig",
    "MemoryAdapter",
    "RedisAdapter",
    "create_cache",
]
