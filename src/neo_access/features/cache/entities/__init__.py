"""Cache entities and protocols."""

from .protocols import ExternalCache
from .config import CacheConfig, serialize_value, deserialize_value

__all__ = [
    "ExternalCache",
    "CacheConfig",
    "serialize_value",
    "deserialize_value",
]
