"""Constants and enums for neo-access.

This module defines the constants, enums, and default configuration values
that are used throughout the neo-access library. Enum values double as the
values stored by the authoritative store and read from the environment.
"""

from enum import Enum
from typing import Final


class CacheDefaults:
    """Default cache settings for the registrar."""

    KEY_PREFIX: Final[str] = "neo_access.permissions.cache"
    TTL_SECONDS: Final[int] = 86400          # 24 hours
    MEMORY_MAX_ENTRIES: Final[int] = 1000


class CacheKeys:
    """Collection suffixes appended to the registrar cache key prefix."""

    PERMISSIONS: Final[str] = "permissions"
    ROLES: Final[str] = "roles"
    CAPABILITIES: Final[str] = "capabilities"


class WildcardDefaults:
    """Reserved characters for the wildcard dialects."""

    TOKEN: Final[str] = "*"
    PART_DELIMITER: Final[str] = ":"
    SUBPART_DELIMITER: Final[str] = ","
    DOT_DELIMITER: Final[str] = "."
    PATTERN_CACHE_SIZE: Final[int] = 1000


class DatabaseSchemas:
    """Database schema names."""

    DEFAULT: Final[str] = "public"


DEFAULT_GUARD: Final[str] = "web"


class CacheStore(str, Enum):
    """External cache backends available to the registrar."""

    MEMORY = "memory"
    REDIS = "redis"
    NONE = "none"


class WildcardDialect(str, Enum):
    """Wildcard dialects - colon-delimited with tail-crossing, or dot-delimited single segment."""

    COLON = "colon"
    DOT = "dot"


class MissingFeatureBehavior(str, Enum):
    """What a feature check does when no feature-flag resolver is configured."""

    ALLOW = "allow"
    DENY = "deny"
    THROW = "throw"


class AssignmentKind(str, Enum):
    """Kinds of grants a subject can hold."""

    PERMISSION = "permission"
    ROLE = "role"
    CAPABILITY = "capability"


class RelationType(str, Enum):
    """Many-to-many links between definitions kept by the authoritative store."""

    ROLE_PERMISSION = "role_permission"
    ROLE_CAPABILITY = "role_capability"
    CAPABILITY_PERMISSION = "capability_permission"
    ROLE_PARENT = "role_parent"
