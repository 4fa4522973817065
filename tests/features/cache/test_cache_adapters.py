"""Tests for the external cache adapters and factory."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

from neo_access.config import AccessSettings, CacheStore
from neo_access.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheSerializationError,
    ConfigurationError,
)
from neo_access.features.cache import (
    CacheConfig,
    ExternalCache,
    MemoryAdapter,
    RedisAdapter,
    create_cache,
)


class TestMemoryAdapter:
    """Test the in-process cache."""

    @pytest.mark.asyncio
    async def test_put_get_forget(self):
        """Test basic cache operations."""
        cache = MemoryAdapter()

        await cache.put("key", [{"name": "posts.view"}])

        assert await cache.get("key") == [{"name": "posts.view"}]
        assert await cache.forget("key") is True
        assert await cache.forget("key") is False
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_values_are_copies(self):
        """Test mutating a returned value does not change the cache."""
        cache = MemoryAdapter()
        await cache.put("key", {"names": ["a"]})

        value = await cache.get("key")
        value["names"].append("b")

        assert await cache.get("key") == {"names": ["a"]}

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, mocker):
        """Test entries disappear after their TTL."""
        clock = mocker.patch("neo_access.features.cache.adapters.memory_adapter.time.time", return_value=1000.0)
        cache = MemoryAdapter()
        await cache.put("key", 1, ttl=10)

        clock.return_value = 1005.0
        assert await cache.get("key") == 1

        clock.return_value = 1011.0
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_lru_eviction(self):
        """Test the least recently used entry goes first."""
        cache = MemoryAdapter(max_size=2)
        await cache.put("a", 1)
        await cache.put("b", 2)
        await cache.get("a")

        await cache.put("c", 3)

        assert await cache.get("b") is None
        assert await cache.get("a") == 1
        assert await cache.size() == 2

    @pytest.mark.asyncio
    async def test_unserializable_value(self):
        """Test values JSON cannot encode are rejected."""
        cache = MemoryAdapter()

        with pytest.raises(CacheSerializationError):
            await cache.put("key", {1, 2})

    @pytest.mark.asyncio
    async def test_clear_and_health(self):
        """Test clearing and the health check."""
        cache = MemoryAdapter()
        await cache.put("a", 1)

        await cache.clear()

        assert await cache.size() == 0
        assert await cache.health_check() is True
        assert isinstance(cache, ExternalCache)

    def test_invalid_size(self):
        """Test a non-positive size is rejected."""
        with pytest.raises(ValueError):
            MemoryAdapter(max_size=0)


class TestRedisAdapter:
    """Test the redis adapter against a mocked client."""

    @pytest.fixture
    def client(self):
        client = AsyncMock()
        client.get.return_value = None
        client.set.return_value = True
        client.delete.return_value = 1
        client.ping.return_value = True
        return client

    @pytest.fixture
    def adapter(self, client):
        return RedisAdapter(client=client, key_prefix="neo_access.permissions.cache")

    @pytest.mark.asyncio
    async def test_put_uses_expiry(self, adapter, client):
        """Test values are stored as JSON with SET EX."""
        await adapter.put("k", {"a": 1}, ttl=60)

        client.set.assert_awaited_once_with("k", '{"a":1}', ex=60)

    @pytest.mark.asyncio
    async def test_put_without_ttl(self, adapter, client):
        """Test a missing TTL stores without expiry."""
        await adapter.put("k", [1])

        client.set.assert_awaited_once_with("k", "[1]", ex=None)

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self, adapter, client):
        """Test byte payloads are decoded."""
        client.get.return_value = b'[{"name":"x"}]'

        assert await adapter.get("k") == [{"name": "x"}]

    @pytest.mark.asyncio
    async def test_get_miss(self, adapter):
        """Test a missing key returns None."""
        assert await adapter.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_invalid_payload(self, adapter, client):
        """Test a corrupt payload raises a serialization error."""
        client.get.return_value = b"{not json"

        with pytest.raises(CacheSerializationError):
            await adapter.get("k")

    @pytest.mark.asyncio
    async def test_forget(self, adapter, client):
        """Test forget reports whether a key was deleted."""
        assert await adapter.forget("k") is True
        client.delete.return_value = 0
        assert await adapter.forget("k") is False

    @pytest.mark.asyncio
    async def test_error_mapping(self, adapter, client):
        """Test redis errors map onto cache errors."""
        client.get.side_effect = RedisConnectionError("down")
        with pytest.raises(CacheConnectionError):
            await adapter.get("k")

        client.delete.side_effect = RedisError("bad")
        with pytest.raises(CacheError):
            await adapter.forget("k")

    @pytest.mark.asyncio
    async def test_clear_only_prefixed_keys(self, adapter, client):
        """Test clear scans and deletes keys under the prefix."""
        async def scan(match):
            assert match == "neo_access.permissions.cache*"
            for key in (b"neo_access.permissions.cache.roles", b"neo_access.permissions.cache.permissions"):
                yield key

        client.scan_iter = MagicMock(side_effect=scan)

        await adapter.clear()

        client.delete.assert_awaited_once_with(
            b"neo_access.permissions.cache.roles", b"neo_access.permissions.cache.permissions"
        )

    @pytest.mark.asyncio
    async def test_clear_requires_prefix(self, client):
        """Test clear refuses to run without a prefix."""
        with pytest.raises(CacheError):
            await RedisAdapter(client=client).clear()

    @pytest.mark.asyncio
    async def test_health_check(self, adapter, client):
        """Test the health check pings and swallows redis errors."""
        assert await adapter.health_check() is True

        client.ping.side_effect = RedisError("no")
        assert await adapter.health_check() is False

    @pytest.mark.asyncio
    async def test_disconnect(self, adapter, client):
        """Test disconnect closes and drops the client."""
        await adapter.disconnect()

        client.aclose.assert_awaited_once()
        assert adapter.redis_client is None

    def test_requires_client_or_url(self):
        """Test construction without a client or URL fails."""
        with pytest.raises(CacheConnectionError):
            RedisAdapter()

    @pytest.mark.asyncio
    async def test_connect_from_url(self, mocker):
        """Test the client is created lazily from the URL."""
        from_url = mocker.patch(
            "neo_access.features.cache.adapters.redis_adapter.redis.from_url",
            return_value=AsyncMock(),
        )
        adapter = RedisAdapter(url="redis://localhost:6379/0")

        client = await adapter.connect()

        from_url.assert_called_once_with("redis://localhost:6379/0")
        assert await adapter.connect() is client


class TestCacheFactory:
    """Test cache selection from settings."""

    def test_memory(self):
        """Test the memory store uses the configured size."""
        cache = create_cache(AccessSettings(_env_file=None, cache_max_entries=5))

        assert isinstance(cache, MemoryAdapter)
        assert cache.max_size == 5

    @pytest.mark.parametrize("overrides", [
        {"cache_store": CacheStore.NONE},
        {"cache_ttl_seconds": 0},
    ])
    def test_disabled(self, overrides):
        """Test the none store and a zero TTL give no cache."""
        assert create_cache(AccessSettings(_env_file=None, **overrides)) is None

    def test_redis(self):
        """Test the redis store uses the URL and key prefix."""
        settings = AccessSettings(_env_file=None, cache_store=CacheStore.REDIS, redis_url="redis://cache:6379/1")

        cache = create_cache(settings)

        assert isinstance(cache, RedisAdapter)
        assert cache.url == "redis://cache:6379/1"
        assert cache.key_prefix == settings.cache_key_prefix

    def test_redis_without_url(self):
        """Test the redis store needs a URL."""
        with pytest.raises(ConfigurationError):
            create_cache(AccessSettings(_env_file=None, cache_store=CacheStore.REDIS))

    def test_cache_config_from_settings(self):
        """Test the config snapshot mirrors the settings."""
        config = CacheConfig.from_settings(AccessSettings(_env_file=None, cache_ttl_seconds=30))

        assert config.ttl_seconds == 30
        assert config.store == CacheStore.MEMORY
