"""Cache configuration for neo-access."""

import json
from typing import Any, Optional
from dataclasses import dataclass

from ....config.constants import CacheDefaults, CacheStore
from ....config.settings import AccessSettings
from ....core.exceptions import CacheSerializationError


@dataclass(frozen=True)
class CacheConfig:
    """Backend selection and limits for the external cache."""

    store: CacheStore = CacheStore.MEMORY
    key_prefix: str = CacheDefaults.KEY_PREFIX
    ttl_seconds: int = CacheDefaults.TTL_SECONDS
    max_entries: int = CacheDefaults.MEMORY_MAX_ENTRIES
    redis_url: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: AccessSettings) -> "CacheConfig":
        return cls(
            store=settings.cache_store,
            key_prefix=settings.cache_key_prefix,
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
            redis_url=settings.redis_url,
        )


def serialize_value(key: str, value: Any) -> str:
    """Encode a cache value as JSON."""
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(f"Cannot serialize value for key {key}: {e}")


def deserialize_value(key: str, payload: Any) -> Any:
    """Decode a JSON cache payload (str or bytes)."""
    try:
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode("utf-8")
        return json.loads(payload)
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(f"Cannot deserialize value for key {key}: {e}")
