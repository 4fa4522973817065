"""Tests for the cache-backed registrar."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from neo_access.config import CacheStore
from neo_access.core.exceptions import CacheError
from neo_access.features.permissions.entities import (
    CapabilityRecord,
    PermissionRecord,
    RoleRecord,
)
from neo_access.features.registry import AccessRegistrar


class TestCacheConfiguration:
    """Test cache key and expiry properties."""

    def test_keys(self, registrar):
        """Test the per-collection keys derive from the prefix."""
        assert registrar.cache_key == "neo_access.permissions.cache"
        assert registrar.cache_key_for("roles") == "neo_access.permissions.cache.roles"
        assert registrar.cache_expiration == 86400
        assert registrar.uses_external_cache

    def test_zero_ttl_disables_external_cache(self, store, memory_cache, make_settings):
        """Test a zero TTL bypasses the external cache."""
        registrar = AccessRegistrar(store, memory_cache, make_settings(cache_ttl_seconds=0))

        assert not registrar.uses_external_cache


class TestLoading:
    """Test cache-aside loading."""

    @pytest.mark.asyncio
    async def test_first_read_populates_cache(self, blog_store, registrar, memory_cache):
        """Test a miss loads from the store and fills the external cache."""
        roles = await registrar.get_roles()

        assert [r.name for r in roles] == ["viewer", "editor", "admin"]
        cached = await memory_cache.get("neo_access.permissions.cache.roles")
        assert [item["name"] for item in cached] == ["viewer", "editor", "admin"]

    @pytest.mark.asyncio
    async def test_second_read_uses_memo(self, blog_store, registrar, mocker):
        """Test the store is read once while populated."""
        spy = mocker.spy(blog_store, "load_all_permissions")

        await registrar.get_permissions()
        await registrar.get_permissions()

        assert spy.call_count == 1

    @pytest.mark.asyncio
    async def test_external_cache_hit_skips_store(self, blog_store, memory_cache, settings, mocker):
        """Test a fresh registrar reads records populated by another one."""
        await AccessRegistrar(blog_store, memory_cache, settings).get_roles()
        spy = mocker.spy(blog_store, "load_all_roles")

        roles = await AccessRegistrar(blog_store, memory_cache, settings).get_roles()

        assert spy.call_count == 0
        assert roles[1].parent_names == ("viewer",)

    @pytest.mark.asyncio
    async def test_returned_lists_are_copies(self, blog_store, registrar):
        """Test callers cannot mutate the memoised collection."""
        roles = await registrar.get_roles()
        roles.clear()

        assert len(await registrar.get_roles()) == 3

    @pytest.mark.asyncio
    async def test_malformed_cache_entry_is_replaced(self, blog_store, registrar, memory_cache):
        """Test an unreadable cache entry falls back to the store."""
        await memory_cache.put("neo_access.permissions.cache.roles", [{"unexpected": True}])

        roles = await registrar.get_roles()

        assert len(roles) == 3

    @pytest.mark.asyncio
    async def test_cache_failures_fall_back_to_store(self, blog_store, settings):
        """Test cache read and write errors do not fail the read."""
        cache = AsyncMock()
        cache.get.side_effect = CacheError("down")
        cache.put.side_effect = CacheError("down")
        registrar = AccessRegistrar(blog_store, cache, settings)

        assert len(await registrar.get_permissions()) == 3

    @pytest.mark.asyncio
    async def test_no_external_cache(self, blog_store, make_settings):
        """Test loading straight from the store without a cache."""
        registrar = AccessRegistrar(blog_store, None, make_settings(cache_store=CacheStore.NONE))

        assert len(await registrar.get_roles()) == 3
        assert await registrar.forget_cached_permissions() is True

    @pytest.mark.asyncio
    async def test_capabilities_disabled(self, store, registrar, mocker):
        """Test capabilities are not loaded while disabled."""
        spy = mocker.spy(store, "load_all_capabilities")

        assert await registrar.get_capabilities() == []
        assert spy.call_count == 0

    @pytest.mark.asyncio
    async def test_capabilities_enabled(self, store, memory_cache, make_settings):
        """Test capabilities load when enabled."""
        await store.create_capability(CapabilityRecord(name="billing", guard="web"))
        registrar = AccessRegistrar(store, memory_cache, make_settings(capabilities_enabled=True))

        assert await registrar.get_capability_names() == ["billing"]
        assert await registrar.capability_exists("billing", "web")


class TestLookups:
    """Test lookup helpers."""

    @pytest.mark.asyncio
    async def test_by_name_and_guard(self, blog_store, registrar):
        """Test lookups respect the guard."""
        await blog_store.create_permission(PermissionRecord(name="view_posts", guard="api"))

        assert (await registrar.get_permission_by_name("view_posts", "api")).guard == "api"
        assert await registrar.get_role_by_name("viewer", "api") is None
        assert await registrar.role_exists("viewer", "web")
        assert not await registrar.permission_exists("publish_posts", "web")
        assert await registrar.get_permission_names("api") == ["view_posts"]
        assert len(await registrar.get_permissions_for_guard("web")) == 3
        assert await registrar.get_role_names() == ["viewer", "editor", "admin"]

    @pytest.mark.asyncio
    async def test_registry_is_memoised(self, blog_store, registrar):
        """Test the registry snapshot is rebuilt only after invalidation."""
        first = await registrar.get_registry()

        assert await registrar.get_registry() is first
        await registrar.forget_cached_permissions()
        assert await registrar.get_registry() is not first


class TestInvalidation:
    """Test that reads after invalidation see the new state."""

    @pytest.mark.asyncio
    async def test_mutation_visible_after_invalidation(self, blog_store, registrar):
        """Test populate, mutate the store directly, invalidate, read."""
        assert len(await registrar.get_roles()) == 3

        await blog_store.create_role(RoleRecord(name="author", guard="web"))
        assert len(await registrar.get_roles()) == 3

        await registrar.forget_cached_permissions()

        assert [r.name for r in await registrar.get_roles()][-1] == "author"

    @pytest.mark.asyncio
    async def test_forget_removes_every_key(self, blog_store, registrar, memory_cache):
        """Test all collection keys are dropped."""
        await registrar.get_permissions()
        await registrar.get_roles()

        assert await registrar.forget_cached_permissions() is True

        assert await memory_cache.get("neo_access.permissions.cache.permissions") is None
        assert await memory_cache.get("neo_access.permissions.cache.roles") is None
        assert registrar.generation == 1

    @pytest.mark.asyncio
    async def test_forget_continues_after_failure(self, blog_store, settings, caplog):
        """Test each key is attempted and failures are reported."""
        cache = AsyncMock()
        cache.forget.side_effect = [CacheError("down"), True, True]
        registrar = AccessRegistrar(blog_store, cache, settings)

        assert await registrar.forget_cached_permissions() is False

        assert cache.forget.await_count == 3
        assert "Failed to forget access cache key" in caplog.text


class TestSingleFlight:
    """Test concurrent first readers share one load."""

    @pytest.mark.asyncio
    async def test_concurrent_readers_share_one_load(self, blog_store, registrar, slow_loader):
        """Test many concurrent readers cause exactly one store load."""
        records = await blog_store.load_all_roles()
        blog_store.load_all_roles = slow_loader(records)

        results = await asyncio.gather(*(registrar.get_roles() for _ in range(10)))

        assert blog_store.load_all_roles.await_count == 1
        assert all(len(r) == 3 for r in results)

    @pytest.mark.asyncio
    async def test_load_racing_invalidation_is_not_kept(self, blog_store, registrar, memory_cache, slow_loader):
        """Test a load that started before invalidation does not repopulate stale data."""
        stale = await blog_store.load_all_roles()
        blog_store.load_all_roles = slow_loader(stale, delay=0.05)

        in_flight = asyncio.create_task(registrar.get_roles())
        await asyncio.sleep(0.01)
        await registrar.forget_cached_permissions()
        await in_flight

        assert await memory_cache.get("neo_access.permissions.cache.roles") is None

        fresh = stale + [RoleRecord(name="author", guard="web")]
        blog_store.load_all_roles = AsyncMock(return_value=fresh)

        roles = await registrar.get_roles()

        assert [r.name for r in roles][-1] == "author"
        blog_store.load_all_roles.assert_awaited_once()
