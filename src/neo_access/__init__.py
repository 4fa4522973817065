"""Neo-Access - role-based access control for the NeoMultiTenant platform.

Role hierarchy resolution, wildcard permission matching, a definition
registry and a cache-backed registrar over pluggable stores.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config import (
    AccessSettings,
    get_settings,
    AssignmentKind,
    CacheStore,
    MissingFeatureBehavior,
    RelationType,
    WildcardDialect,
)

from .core.exceptions import (
    NeoAccessError,
    ConfigurationError,
    CircularRoleInheritanceError,
    GuardMismatchError,
    EntityNotFoundError,
    PermissionNotFoundError,
    RoleNotFoundError,
    CapabilityNotFoundError,
    PermissionAlreadyExistsError,
    RoleAlreadyExistsError,
    CapabilityAlreadyExistsError,
    FeatureAccessError,
    UnauthorizedError,
    CacheError,
    StoreError,
    create_error_response,
)

from .core.value_objects import SubjectReference, ContextReference

from .features.permissions import (
    AuthorizationStore,
    PermissionRecord,
    RoleRecord,
    ResolvedRole,
    CapabilityRecord,
    SubjectAssignment,
    InMemoryAuthorizationStore,
    AsyncPGAuthorizationStore,
)
from .features.permissions.services import RoleHierarchyResolver
from .features.wildcards import (
    ColonWildcardMatcher,
    DotWildcardMatcher,
    WildcardHandler,
    create_wildcard_handler,
)
from .features.cache import ExternalCache, MemoryAdapter, RedisAdapter, create_cache
from .features.registry import DefinitionRegistry, AccessRegistrar
from .features.flags import FeatureFlagResolver, FeatureGate
from .features.audit import AuditLogger, LoggingAuditLogger
from .features.permissions.services.access_service import AccessService
from .features.definitions import AccessDefinitions, DefinitionSynchronizer, SyncResult

__all__ = [
    "__version__",

    # Configuration
    "AccessSettings",
    "get_settings",
    "AssignmentKind",
    "CacheStore",
    "MissingFeatureBehavior",
    "RelationType",
    "WildcardDialect",

    # Exceptions
    "NeoAccessError",
    "ConfigurationError",
    "CircularRoleInheritanceError",
    "GuardMismatchError",
    "EntityNotFoundError",
    "PermissionNotFoundError",
    "RoleNotFoundError",
    "CapabilityNotFoundError",
    "PermissionAlreadyExistsError",
    "RoleAlreadyExistsError",
    "CapabilityAlreadyExistsError",
    "FeatureAccessError",
    "UnauthorizedError",
    "CacheError",
    "StoreError",
    "create_error_response",

    # Value objects
    "SubjectReference",
    "ContextReference",

    # Permissions
    "AuthorizationStore",
    "PermissionRecord",
    "RoleRecord",
    "ResolvedRole",
    "CapabilityRecord",
    "SubjectAssignment",
    "InMemoryAuthorizationStore",
    "AsyncPGAuthorizationStore",
    "RoleHierarchyResolver",
    "AccessService",

    # Wildcards
    "ColonWildcardMatcher",
    "DotWildcardMatcher",
    "WildcardHandler",
    "create_wildcard_handler",

    # Cache
    "ExternalCache",
    "MemoryAdapter",
    "RedisAdapter",
    "create_cache",

    # Registry
    "DefinitionRegistry",
    "AccessRegistrar",

    # Feature flags
    "FeatureFlagResolver",
    "FeatureGate",

    # Audit
    "AuditLogger",
    "LoggingAuditLogger",

    # Definitions
    "AccessDefinitions",
    "DefinitionSynchronizer",
    "SyncResult",
]
