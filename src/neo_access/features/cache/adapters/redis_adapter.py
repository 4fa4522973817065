"""Redis cache adapter for neo-access."""

import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError

from ..entities.config import serialize_value, deserialize_value
from ....core.exceptions import (
    CacheError,
    CacheConnectionError,
)

logger = logging.getLogger(__name__)


class RedisAdapter:
    """External cache backed by ``redis.asyncio``.

    Either pass a ready client or a URL; with a URL the client is created on
    first use. ``clear()`` only deletes keys under ``key_prefix``.
    """

    def __init__(
        self,
        client: Optional[Redis] = None,
        url: Optional[str] = None,
        key_prefix: Optional[str] = None,
    ):
        if client is None and not url:
            raise CacheConnectionError("RedisAdapter needs a redis client or a redis URL")
        self.redis_client: Optional[Redis] = client
        self.url = url
        self.key_prefix = key_prefix

    async def connect(self) -> Redis:
        """Create the client from the URL if needed."""
        if self.redis_client is None:
            try:
                self.redis_client = redis.from_url(self.url)
                logger.info("Created Redis client for access cache")
            except (RedisError, ValueError) as e:
                raise CacheConnectionError(f"Failed to connect to Redis: {e}")
        return self.redis_client

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self.redis_client:
            try:
                await self.redis_client.aclose()
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                self.redis_client = None

    async def get(self, key: str) -> Optional[Any]:
        client = await self.connect()

        try:
            result = await client.get(key)
        except RedisConnectionError as e:
            raise CacheConnectionError(f"Redis connection error for key {key}: {e}")
        except RedisError as e:
            raise CacheError(f"Redis get error for key {key}: {e}")

        if result is None:
            return None
        return deserialize_value(key, result)

    async def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = serialize_value(key, value)
        client = await self.connect()

        try:
            await client.set(key, payload, ex=ttl if ttl and ttl > 0 else None)
        except RedisConnectionError as e:
            raise CacheConnectionError(f"Redis connection error for key {key}: {e}")
        except RedisError as e:
            raise CacheError(f"Redis set error for key {key}: {e}")

    async def forget(self, key: str) -> bool:
        client = await self.connect()

        try:
            return await client.delete(key) > 0
        except RedisConnectionError as e:
            raise CacheConnectionError(f"Redis connection error for key {key}: {e}")
        except RedisError as e:
            raise CacheError(f"Redis delete error for key {key}: {e}")

    async def clear(self) -> None:
        if not self.key_prefix:
            raise CacheError("Refusing to clear Redis without a key prefix")

        client = await self.connect()
        try:
            keys = [key async for key in client.scan_iter(match=f"{self.key_prefix}*")]
            if keys:
                await client.delete(*keys)
            logger.info(f"Cleared {len(keys)} Redis keys under {self.key_prefix}")
        except RedisError as e:
            raise CacheError(f"Redis clear error for prefix {self.key_prefix}: {e}")

    async def health_check(self) -> bool:
        try:
            client = await self.connect()
            return bool(await client.ping())
        except (RedisError, CacheError) as e:
            logger.warning(f"Redis health check failed: {e}")
            return False
