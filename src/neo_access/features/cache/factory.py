"""Factory for the configured external cache."""

import logging
from typing import Optional

from ...config.constants import CacheStore
from ...config.settings import AccessSettings, get_settings
from ...core.exceptions import ConfigurationError
from .entities.config import CacheConfig
from .entities.protocols import ExternalCache
from .adapters import MemoryAdapter, RedisAdapter

logger = logging.getLogger(__name__)


def create_cache(settings: Optional[AccessSettings] = None) -> Optional[ExternalCache]:
    """Create the external cache for ``cache_store``.

    Returns None for the ``none`` store or a zero TTL; the registrar then
    memoises in process only.
    """
    settings = settings or get_settings()
    config = CacheConfig.from_settings(settings)

    if config.store == CacheStore.NONE or config.ttl_seconds == 0:
        logger.info("External access cache disabled")
        return None

    if config.store == CacheStore.REDIS:
        if not config.redis_url:
            raise ConfigurationError(
                "NEO_ACCESS_REDIS_URL is required when the cache store is 'redis'"
            )
        logger.info("Using Redis access cache")
        return RedisAdapter(url=config.redis_url, key_prefix=config.key_prefix)

    logger.info(f"Using in-memory access cache (max_entries={config.max_entries})")
    return MemoryAdapter(max_size=config.max_entries)
