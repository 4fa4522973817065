"""Cache-backed registrar for permission, role and capability collections.

Each collection goes through the same lifecycle: Empty, Loading, Populated,
and back to Empty on any mutation. Reads are cache-aside (in-process memo,
then the external cache, then the authoritative store). Concurrent first
readers of a collection share a single load, and an invalidation generation
keeps a load that raced a mutation from repopulating stale data.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from ...config.constants import CacheKeys
from ...config.settings import AccessSettings, get_settings
from ...core.exceptions import CacheError, NeoAccessError
from ..cache.entities.protocols import ExternalCache
from ..permissions.entities import (
    AuthorizationStore,
    CapabilityRecord,
    PermissionRecord,
    RoleRecord,
)
from ..permissions.services.hierarchy_resolver import RoleHierarchyResolver
from .definition_registry import DefinitionRegistry

logger = logging.getLogger(__name__)

_COLLECTIONS = (CacheKeys.PERMISSIONS, CacheKeys.ROLES, CacheKeys.CAPABILITIES)


class AccessRegistrar:
    """Owns the load, cache and invalidate lifecycle of the definition collections."""

    def __init__(
        self,
        store: AuthorizationStore,
        cache: Optional[ExternalCache] = None,
        settings: Optional[AccessSettings] = None,
        resolver: Optional[RoleHierarchyResolver] = None,
    ):
        self.store = store
        self.cache = cache
        self.settings = settings or get_settings()
        self.resolver = resolver or RoleHierarchyResolver()

        self._memo: Dict[str, List[Any]] = {}
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in _COLLECTIONS}
        self._registry: Optional[DefinitionRegistry] = None
        self._registry_lock = asyncio.Lock()
        self._generation = 0

    # Cache configuration

    @property
    def cache_key(self) -> str:
        return self.settings.cache_key_prefix

    @property
    def cache_expiration(self) -> int:
        return self.settings.cache_ttl_seconds

    @property
    def generation(self) -> int:
        """Number of invalidations so far."""
        return self._generation

    def cache_key_for(self, collection: str) -> str:
        return f"{self.cache_key}.{collection}"

    @property
    def uses_external_cache(self) -> bool:
        return self.cache is not None and self.cache_expiration > 0

    # Collections

    async def get_permissions(self) -> List[PermissionRecord]:
        return await self._get_collection(
            CacheKeys.PERMISSIONS, self.store.load_all_permissions, PermissionRecord
        )

    async def get_roles(self) -> List[RoleRecord]:
        return await self._get_collection(
            CacheKeys.ROLES, self.store.load_all_roles, RoleRecord
        )

    async def get_capabilities(self) -> List[CapabilityRecord]:
        if not self.settings.capabilities_enabled:
            return []
        return await self._get_collection(
            CacheKeys.CAPABILITIES, self.store.load_all_capabilities, CapabilityRecord
        )

    async def get_permissions_for_guard(self, guard: str) -> List[PermissionRecord]:
        return [p for p in await self.get_permissions() if p.guard == guard]

    async def get_roles_for_guard(self, guard: str) -> List[RoleRecord]:
        return [r for r in await self.get_roles() if r.guard == guard]

    async def get_capabilities_for_guard(self, guard: str) -> List[CapabilityRecord]:
        return [c for c in await self.get_capabilities() if c.guard == guard]

    async def get_registry(self) -> DefinitionRegistry:
        """Indexed snapshot over the three collections, rebuilt after invalidation."""
        registry = self._registry
        if registry is not None:
            return registry

        async with self._registry_lock:
            if self._registry is not None:
                return self._registry

            generation = self._generation
            registry = DefinitionRegistry(
                permissions=await self.get_permissions(),
                roles=await self.get_roles(),
                capabilities=await self.get_capabilities(),
                resolver=self.resolver,
                capabilities_enabled=self.settings.capabilities_enabled,
            )
            if generation == self._generation:
                self._registry = registry
            return registry

    # Lookups

    async def get_permission_by_name(self, name: str, guard: str) -> Optional[PermissionRecord]:
        return next((p for p in await self.get_permissions() if p.name == name and p.guard == guard), None)

    async def get_role_by_name(self, name: str, guard: str) -> Optional[RoleRecord]:
        return next((r for r in await self.get_roles() if r.name == name and r.guard == guard), None)

    async def get_capability_by_name(self, name: str, guard: str) -> Optional[CapabilityRecord]:
        return next((c for c in await self.get_capabilities() if c.name == name and c.guard == guard), None)

    async def permission_exists(self, name: str, guard: str) -> bool:
        return await self.get_permission_by_name(name, guard) is not None

    async def role_exists(self, name: str, guard: str) -> bool:
        return await self.get_role_by_name(name, guard) is not None

    async def capability_exists(self, name: str, guard: str) -> bool:
        return await self.get_capability_by_name(name, guard) is not None

    async def get_permission_names(self, guard: Optional[str] = None) -> List[str]:
        return [p.name for p in await self.get_permissions() if guard is None or p.guard == guard]

    async def get_role_names(self, guard: Optional[str] = None) -> List[str]:
        return [r.name for r in await self.get_roles() if guard is None or r.guard == guard]

    async def get_capability_names(self, guard: Optional[str] = None) -> List[str]:
        return [c.name for c in await self.get_capabilities() if guard is None or c.guard == guard]

    # Invalidation

    async def forget_cached_permissions(self) -> bool:
        """Invalidate the in-process memo and every external cache key.

        Each key is attempted even if an earlier one fails; failures are
        logged and reported through the return value.
        """
        self._generation += 1
        self._memo.clear()
        self._registry = None

        succeeded = True
        if self.cache is not None:
            for collection in _COLLECTIONS:
                key = self.cache_key_for(collection)
                try:
                    await self.cache.forget(key)
                except Exception as e:
                    succeeded = False
                    logger.error(f"Failed to forget access cache key {key}: {e}")

        logger.info(f"Access cache invalidated (generation {self._generation})")
        return succeeded

    # Loading

    async def _get_collection(
        self,
        collection: str,
        loader: Callable[[], Awaitable[List[Any]]],
        record_type: Type[Any],
    ) -> List[Any]:
        records = self._memo.get(collection)
        if records is not None:
            return list(records)

        async with self._locks[collection]:
            records = self._memo.get(collection)
            if records is not None:
                return list(records)

            generation = self._generation
            records = await self._load_from_cache_or_store(collection, loader, record_type, generation)

            if generation == self._generation:
                self._memo[collection] = records
            else:
                logger.debug(f"Discarding {collection} loaded before invalidation")
            return list(records)

    async def _load_from_cache_or_store(
        self,
        collection: str,
        loader: Callable[[], Awaitable[List[Any]]],
        record_type: Type[Any],
        generation: int,
    ) -> List[Any]:
        if not self.uses_external_cache:
            logger.debug(f"Loading {collection} from store (external cache disabled)")
            return list(await loader())

        key = self.cache_key_for(collection)
        cached = await self._read_cache(key)
        if cached is not None:
            try:
                return [record_type.from_dict(item) for item in cached]
            except (KeyError, TypeError, ValueError, NeoAccessError) as e:
                logger.warning(f"Discarding malformed cache entry {key}: {e}")

        logger.debug(f"Access cache miss for {key}, loading {collection} from store")
        records = list(await loader())

        try:
            await self.cache.put(key, [record.to_dict() for record in records], self.cache_expiration)
        except CacheError as e:
            logger.warning(f"Failed to populate access cache key {key}: {e}")
            return records

        if generation != self._generation:
            # A mutation landed while this load was in flight
            await self._forget_quietly(key)
        return records

    async def _read_cache(self, key: str) -> Optional[Any]:
        try:
            return await self.cache.get(key)
        except CacheError as e:
            logger.warning(f"Access cache read failed for {key}, using store: {e}")
            return None

    async def _forget_quietly(self, key: str) -> None:
        try:
            await self.cache.forget(key)
        except CacheError as e:
            logger.error(f"Failed to forget access cache key {key}: {e}")
