"""Domain exceptions for neo-access.

Configuration and integrity errors are fatal and never retried. Not-found
errors are local to a single lookup and left to the caller to handle.
"""

from typing import List, Optional, Sequence

from .base import NeoAccessError


# Configuration Errors
class ConfigurationError(NeoAccessError):
    """Raised when there's a configuration issue."""

    category = "configuration"
    fatal = True


class CircularRoleInheritanceError(ConfigurationError):
    """Raised when the role parent graph of a guard contains a cycle."""

    def __init__(self, cycle: Sequence[str], guard: Optional[str] = None):
        self.cycle: List[str] = list(cycle)
        self.guard = guard
        path = " -> ".join(self.cycle)
        message = f"Circular role inheritance detected: {path}"
        if guard:
            message += f" (guard '{guard}')"
        super().__init__(message, details={"cycle": self.cycle, "guard": guard})


class GuardMismatchError(ConfigurationError):
    """Raised when an entity's guard differs from the guard it is used under."""

    def __init__(self, entity_type: str, name: str, entity_guard: str, expected_guard: str):
        self.entity_type = entity_type
        self.name = name
        self.entity_guard = entity_guard
        self.expected_guard = expected_guard
        super().__init__(
            f"The given {entity_type} '{name}' is for guard '{entity_guard}', "
            f"expected guard '{expected_guard}'",
            details={
                "entity_type": entity_type,
                "name": name,
                "entity_guard": entity_guard,
                "expected_guard": expected_guard,
            },
        )

    @classmethod
    def for_permission(cls, name: str, entity_guard: str, expected_guard: str) -> "GuardMismatchError":
        return cls("permission", name, entity_guard, expected_guard)

    @classmethod
    def for_role(cls, name: str, entity_guard: str, expected_guard: str) -> "GuardMismatchError":
        return cls("role", name, entity_guard, expected_guard)

    @classmethod
    def for_capability(cls, name: str, entity_guard: str, expected_guard: str) -> "GuardMismatchError":
        return cls("capability", name, entity_guard, expected_guard)


class AlreadyExistsError(ConfigurationError):
    """Base class for duplicate name+guard creation attempts."""

    entity_type = "entity"

    def __init__(self, name: str, guard: str):
        self.name = name
        self.guard = guard
        super().__init__(
            f"A {self.entity_type} '{name}' already exists for guard '{guard}'",
            details={"name": name, "guard": guard},
        )


class PermissionAlreadyExistsError(AlreadyExistsError):
    """Raised when creating a permission that already exists."""
    entity_type = "permission"


class RoleAlreadyExistsError(AlreadyExistsError):
    """Raised when creating a role that already exists."""
    entity_type = "role"


class CapabilityAlreadyExistsError(AlreadyExistsError):
    """Raised when creating a capability that already exists."""
    entity_type = "capability"


# Not-found Errors
class EntityNotFoundError(NeoAccessError):
    """Base class for lookups by name or id with no match."""

    category = "not_found"
    entity_type = "entity"

    @classmethod
    def with_name(cls, name: str, guard: Optional[str] = None) -> "EntityNotFoundError":
        message = f"There is no {cls.entity_type} named '{name}'"
        if guard:
            message += f" for guard '{guard}'"
        return cls(message, details={"name": name, "guard": guard})

    @classmethod
    def with_id(cls, entity_id: object, guard: Optional[str] = None) -> "EntityNotFoundError":
        message = f"There is no {cls.entity_type} with id '{entity_id}'"
        if guard:
            message += f" for guard '{guard}'"
        return cls(message, details={"id": str(entity_id), "guard": guard})


class PermissionNotFoundError(EntityNotFoundError):
    """Raised when a permission lookup has no match."""
    entity_type = "permission"


class RoleNotFoundError(EntityNotFoundError):
    """Raised when a role lookup has no match."""
    entity_type = "role"


class CapabilityNotFoundError(EntityNotFoundError):
    """Raised when a capability lookup has no match."""
    entity_type = "capability"


# Access Errors
class FeatureAccessError(NeoAccessError):
    """Raised when a feature-gated check runs without a feature resolver in strict mode."""

    category = "configuration"
    fatal = True

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(
            f"Feature '{feature}' cannot be checked: no feature flag resolver is configured",
            details={"feature": feature},
        )


class UnauthorizedError(NeoAccessError):
    """Raised by lookup-or-die authorization when a subject lacks a permission."""

    category = "access"

    def __init__(self, subject_key: str, permissions: Sequence[str]):
        self.subject_key = subject_key
        self.permissions = list(permissions)
        super().__init__(
            f"Subject '{subject_key}' does not have the required permissions: "
            f"{', '.join(self.permissions)}",
            details={"subject": subject_key, "permissions": self.permissions},
        )


class ValidationError(NeoAccessError):
    """Raised when input data fails validation."""
    category = "validation"
