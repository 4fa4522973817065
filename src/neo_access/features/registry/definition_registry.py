"""In-memory indexed view over permission, role and capability definitions.

A ``DefinitionRegistry`` is an immutable snapshot built from the three
collections the registrar loads. Lookups are by ``(name, guard)``; role
resolution runs lazily per guard and is memoised for the life of the
snapshot. A new snapshot is built after every invalidation, so the memo never
outlives the data it was computed from.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..permissions.entities import (
    CapabilityRecord,
    PermissionRecord,
    ResolvedRole,
    RoleRecord,
)
from ..permissions.services.hierarchy_resolver import RoleHierarchyResolver
from ..wildcards.entities.protocols import WildcardHandler

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


class DefinitionRegistry:
    """Indexed, read-only view over one snapshot of definitions."""

    def __init__(
        self,
        permissions: Iterable[PermissionRecord] = (),
        roles: Iterable[RoleRecord] = (),
        capabilities: Iterable[CapabilityRecord] = (),
        resolver: Optional[RoleHierarchyResolver] = None,
        capabilities_enabled: bool = False,
    ):
        self._permissions: Dict[Key, PermissionRecord] = {}
        self._roles: Dict[Key, RoleRecord] = {}
        self._capabilities: Dict[Key, CapabilityRecord] = {}

        for permission in permissions:
            self._permissions.setdefault(permission.key, permission)
        for role in roles:
            self._roles.setdefault(role.key, role)
        for capability in capabilities:
            self._capabilities.setdefault(capability.key, capability)

        self.resolver = resolver or RoleHierarchyResolver()
        self.capabilities_enabled = capabilities_enabled
        self._resolved: Dict[str, Dict[str, ResolvedRole]] = {}

    # Lookups

    def permission(self, name: str, guard: str) -> Optional[PermissionRecord]:
        return self._permissions.get((name, guard))

    def role(self, name: str, guard: str) -> Optional[RoleRecord]:
        return self._roles.get((name, guard))

    def capability(self, name: str, guard: str) -> Optional[CapabilityRecord]:
        return self._capabilities.get((name, guard))

    def permission_exists(self, name: str, guard: str) -> bool:
        return (name, guard) in self._permissions

    def role_exists(self, name: str, guard: str) -> bool:
        return (name, guard) in self._roles

    def capability_exists(self, name: str, guard: str) -> bool:
        return (name, guard) in self._capabilities

    # Enumeration

    def guards(self) -> List[str]:
        """Every guard that has at least one definition, in first-seen order."""
        seen = dict.fromkeys(
            key[1] for index in (self._permissions, self._roles, self._capabilities) for key in index
        )
        return list(seen)

    def permissions(self, guard: Optional[str] = None) -> List[PermissionRecord]:
        return [p for p in self._permissions.values() if guard is None or p.guard == guard]

    def roles(self, guard: Optional[str] = None) -> List[RoleRecord]:
        return [r for r in self._roles.values() if guard is None or r.guard == guard]

    def capabilities(self, guard: Optional[str] = None) -> List[CapabilityRecord]:
        return [c for c in self._capabilities.values() if guard is None or c.guard == guard]

    def permission_names(self, guard: Optional[str] = None) -> List[str]:
        return [p.name for p in self.permissions(guard)]

    def role_names(self, guard: Optional[str] = None) -> List[str]:
        return [r.name for r in self.roles(guard)]

    def capability_names(self, guard: Optional[str] = None) -> List[str]:
        return [c.name for c in self.capabilities(guard)]

    # Hierarchy

    def parents(self, name: str, guard: str) -> List[RoleRecord]:
        """Existing declared parents of a role, in declaration order."""
        role = self.role(name, guard)
        if role is None:
            return []
        return [self._roles[(p, guard)] for p in role.parent_names if (p, guard) in self._roles]

    def children(self, name: str, guard: str) -> List[RoleRecord]:
        """Roles that declare ``name`` as a direct parent."""
        return [r for r in self.roles(guard) if name in r.parent_names]

    def resolved_roles(self, guard: str) -> List[ResolvedRole]:
        """Resolve every role of a guard.

        Raises:
            CircularRoleInheritanceError: if the guard's parent graph has a cycle
        """
        return list(self._resolve_guard(guard).values())

    def resolved_role(self, name: str, guard: str) -> Optional[ResolvedRole]:
        return self._resolve_guard(guard).get(name)

    def _resolve_guard(self, guard: str) -> Dict[str, ResolvedRole]:
        resolved = self._resolved.get(guard)
        if resolved is None:
            resolved = {
                role.name: role
                for role in self.resolver.resolve(self.roles(guard))
            }
            self._resolved[guard] = resolved
            logger.debug(f"Resolved {len(resolved)} roles for guard '{guard}'")
        return resolved

    # Permission expansion

    def role_capabilities(self, name: str, guard: str) -> List[str]:
        """Existing capabilities attached to the role or any of its ancestors."""
        if not self.capabilities_enabled:
            return []
        resolved = self.resolved_role(name, guard)
        if resolved is None:
            return []

        names: List[str] = []
        for role_name in resolved.full_chain:
            names.extend(self._roles[(role_name, guard)].capabilities)
        return [c for c in dict.fromkeys(names) if (c, guard) in self._capabilities]

    def role_permissions(self, name: str, guard: str) -> List[str]:
        """Direct, inherited and capability-provided permissions of a role."""
        resolved = self.resolved_role(name, guard)
        if resolved is None:
            return []

        names = resolved.all_permissions()
        for capability in self.role_capabilities(name, guard):
            names.extend(self.capability_permissions(capability, guard))
        return list(dict.fromkeys(names))

    def capability_permissions(self, name: str, guard: str) -> List[str]:
        capability = self.capability(name, guard)
        return list(capability.permissions) if capability else []

    def matching_permissions(self, pattern: str, guard: str, handler: WildcardHandler) -> List[PermissionRecord]:
        """Known permissions of a guard matched by a wildcard pattern."""
        return handler.get_matching_permissions(pattern, self.permissions(guard))

    def __len__(self) -> int:
        return len(self._permissions) + len(self._roles) + len(self._capabilities)
