"""Declarative authorization definitions and their sync into a store."""

from .entities import (
    AccessDefinitions,
    CapabilityDefinition,
    PermissionDefinition,
    RoleDefinition,
    SyncResult,
)
from .services import DefinitionSynchronizer

__all__ = [
    "AccessDefinitions",
    "CapabilityDefinition",
    "PermissionDefinition",
    "RoleDefinition",
    "SyncResult",
    "DefinitionSynchronizer",
]
