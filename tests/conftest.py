"""Pytest configuration and fixtures for neo-access tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from neo_access.config import AccessSettings
from neo_access.core.value_objects import ContextReference, SubjectReference
from neo_access.features.cache import MemoryAdapter
from neo_access.features.permissions.entities import PermissionRecord, RoleRecord
from neo_access.features.permissions.repositories import InMemoryAuthorizationStore
from neo_access.features.permissions.services.access_service import AccessService
from neo_access.features.registry import AccessRegistrar


@pytest.fixture
def make_settings():
    """Build settings isolated from the environment and .env files."""
    def _make(**overrides) -> AccessSettings:
        return AccessSettings(_env_file=None, **overrides)
    return _make


@pytest.fixture
def settings(make_settings):
    """Default settings."""
    return make_settings()


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryAuthorizationStore()


@pytest_asyncio.fixture
async def blog_store(store):
    """Store holding the viewer / editor / admin hierarchy."""
    for name in ("view_posts", "edit_posts", "delete_posts"):
        await store.create_permission(PermissionRecord(name=name, guard="web"))
    await store.create_role(RoleRecord(name="viewer", guard="web", permissions=("view_posts",)))
    await store.create_role(RoleRecord(
        name="editor", guard="web", permissions=("edit_posts",), parent_names=("viewer",)
    ))
    await store.create_role(RoleRecord(
        name="admin", guard="web", permissions=("delete_posts",), parent_names=("editor",)
    ))
    return store


@pytest.fixture
def memory_cache():
    """In-process external cache."""
    return MemoryAdapter()


@pytest.fixture
def registrar(store, memory_cache, settings):
    """Registrar over the in-memory store and memory cache."""
    return AccessRegistrar(store, memory_cache, settings)


@pytest.fixture
def make_service(store, memory_cache, make_settings):
    """Build an access service over the shared store with settings overrides."""
    def _make(feature_gate=None, audit_logger=None, **overrides) -> AccessService:
        settings = make_settings(**overrides)
        registrar = AccessRegistrar(store, memory_cache, settings)
        return AccessService(
            store, registrar=registrar, settings=settings, feature_gate=feature_gate, audit_logger=audit_logger
        )
    return _make


@pytest.fixture
def user():
    """Subject under the default guard."""
    return SubjectReference("user", "1")


@pytest.fixture
def other_user():
    """Second subject under the default guard."""
    return SubjectReference("user", "2")


@pytest.fixture
def team():
    """Context for one team."""
    return ContextReference("team", "10")


@pytest.fixture
def slow_loader():
    """Async loader that yields to the event loop before returning."""
    def _make(result, delay: float = 0.01) -> AsyncMock:
        async def load(*args, **kwargs):
            await asyncio.sleep(delay)
            return list(result)
        return AsyncMock(side_effect=load)
    return _make


@pytest.fixture
def mock_pool():
    """Mocked asyncpg pool yielding a single mocked connection."""
    conn = AsyncMock()
    conn.transaction = MagicMock()
    conn.transaction.return_value.__aenter__ = AsyncMock(return_value=None)
    conn.transaction.return_value.__aexit__ = AsyncMock(return_value=False)

    pool = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    pool.connection = conn
    return pool
