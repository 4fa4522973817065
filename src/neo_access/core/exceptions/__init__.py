"""Exceptions module for neo-access.

The complete exception hierarchy, organized by domain concerns and
infrastructure concerns.
"""

from .base import (
    NeoAccessError,
    create_error_response,
)

from .domain import (
    # Configuration Errors
    ConfigurationError,
    CircularRoleInheritanceError,
    GuardMismatchError,
    AlreadyExistsError,
    PermissionAlreadyExistsError,
    RoleAlreadyExistsError,
    CapabilityAlreadyExistsError,

    # Not-found Errors
    EntityNotFoundError,
    PermissionNotFoundError,
    RoleNotFoundError,
    CapabilityNotFoundError,

    # Access Errors
    FeatureAccessError,
    UnauthorizedError,
    ValidationError,
)

from .infrastructure import (
    CacheError,
    CacheConnectionError,
    CacheSerializationError,
    StoreError,
)

__all__ = [
    "NeoAccessError",
    "create_error_response",

    "ConfigurationError",
    "CircularRoleInheritanceError",
    "GuardMismatchError",
    "AlreadyExistsError",
    "PermissionAlreadyExistsError",
    "RoleAlreadyExistsError",
    "CapabilityAlreadyExistsError",

    "EntityNotFoundError",
    "PermissionNotFoundError",
    "RoleNotFoundError",
    "CapabilityNotFoundError",

    "FeatureAccessError",
    "UnauthorizedError",
    "ValidationError",

    "CacheError",
    "CacheConnectionError",
    "CacheSerializationError",
    "StoreError",
]
