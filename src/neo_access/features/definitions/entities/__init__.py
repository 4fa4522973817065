"""Declarative definition models and sync results."""

from .definitions import (
    AccessDefinitions,
    CapabilityDefinition,
    PermissionDefinition,
    RoleDefinition,
)
from .sync_result import SyncResult

__all__ = [
    "AccessDefinitions",
    "CapabilityDefinition",
    "PermissionDefinition",
    "RoleDefinition",
    "SyncResult",
]
