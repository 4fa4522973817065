"""Authorization store implementations."""

from .memory_store import InMemoryAuthorizationStore
from .asyncpg_store import AsyncPGAuthorizationStore, validate_schema_name

__all__ = [
    "InMemoryAuthorizationStore",
    "AsyncPGAuthorizationStore",
    "validate_schema_name",
]
