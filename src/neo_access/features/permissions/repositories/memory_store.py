"""In-memory authorization store.

Dict-backed implementation of the AuthorizationStore protocol for tests and
single-process deployments. Records are immutable, so every relation change
swaps the stored record for an updated copy.
"""

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from ....config.constants import AssignmentKind, RelationType
from ....core.exceptions import (
    CapabilityAlreadyExistsError,
    CapabilityNotFoundError,
    PermissionAlreadyExistsError,
    PermissionNotFoundError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
)
from ....core.value_objects import SubjectReference
from ..entities import (
    CapabilityRecord,
    PermissionRecord,
    RoleRecord,
    SubjectAssignment,
)

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


class InMemoryAuthorizationStore:
    """Authoritative store kept in process memory."""

    def __init__(self):
        self._permissions: Dict[Key, PermissionRecord] = {}
        self._roles: Dict[Key, RoleRecord] = {}
        self._capabilities: Dict[Key, CapabilityRecord] = {}
        self._assignments: Dict[str, Dict[tuple, SubjectAssignment]] = {}
        self._ids = itertools.count(1)

    # Snapshot loading

    async def load_all_permissions(self, guard: Optional[str] = None) -> List[PermissionRecord]:
        return [p for p in self._permissions.values() if guard is None or p.guard == guard]

    async def load_all_roles(self, guard: Optional[str] = None) -> List[RoleRecord]:
        return [r for r in self._roles.values() if guard is None or r.guard == guard]

    async def load_all_capabilities(self, guard: Optional[str] = None) -> List[CapabilityRecord]:
        return [c for c in self._capabilities.values() if guard is None or c.guard == guard]

    # Definition mutations

    async def create_permission(self, record: PermissionRecord) -> PermissionRecord:
        if record.key in self._permissions:
            raise PermissionAlreadyExistsError(record.name, record.guard)
        created = replace(record, id=record.id or next(self._ids), created_at=record.created_at or _now())
        self._permissions[created.key] = created
        return created

    async def create_role(self, record: RoleRecord) -> RoleRecord:
        if record.key in self._roles:
            raise RoleAlreadyExistsError(record.name, record.guard)
        self._require_permissions(record.permissions, record.guard)
        self._require_capabilities(record.capabilities, record.guard)
        created = replace(record, id=record.id or next(self._ids), created_at=record.created_at or _now())
        self._roles[created.key] = created
        return created

    async def create_capability(self, record: CapabilityRecord) -> CapabilityRecord:
        if record.key in self._capabilities:
            raise CapabilityAlreadyExistsError(record.name, record.guard)
        self._require_permissions(record.permissions, record.guard)
        created = replace(record, id=record.id or next(self._ids), created_at=record.created_at or _now())
        self._capabilities[created.key] = created
        return created

    async def delete_permission(self, name: str, guard: str) -> bool:
        if self._permissions.pop((name, guard), None) is None:
            return False

        for key, role in list(self._roles.items()):
            if name in role.permissions:
                self._roles[key] = replace(role, permissions=_without(role.permissions, name))
        for key, capability in list(self._capabilities.items()):
            if name in capability.permissions:
                self._capabilities[key] = replace(capability, permissions=_without(capability.permissions, name))
        self._drop_assignments(AssignmentKind.PERMISSION, name, guard)
        return True

    async def delete_role(self, name: str, guard: str) -> bool:
        if self._roles.pop((name, guard), None) is None:
            return False
        logger.debug(f"Deleted role {name}@{guard}")
        # Children keep the name as a missing parent
        self._drop_assignments(AssignmentKind.ROLE, name, guard)
        return True

    async def delete_capability(self, name: str, guard: str) -> bool:
        if self._capabilities.pop((name, guard), None) is None:
            return False

        for key, role in list(self._roles.items()):
            if name in role.capabilities:
                self._roles[key] = replace(role, capabilities=_without(role.capabilities, name))
        self._drop_assignments(AssignmentKind.CAPABILITY, name, guard)
        return True

    # Relations

    async def attach(self, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        relation = RelationType(relation)

        if relation == RelationType.CAPABILITY_PERMISSION:
            capability = self._get_capability(owner, guard)
            self._require_permissions((target,), guard)
            if target in capability.permissions:
                return False
            self._capabilities[capability.key] = replace(
                capability, permissions=capability.permissions + (target,)
            )
            return True

        role = self._get_role(owner, guard)

        if relation == RelationType.ROLE_PERMISSION:
            self._require_permissions((target,), guard)
            field_name = "permissions"
        elif relation == RelationType.ROLE_CAPABILITY:
            self._require_capabilities((target,), guard)
            field_name = "capabilities"
        else:
            field_name = "parent_names"

        current = getattr(role, field_name)
        if target in current:
            return False
        self._roles[role.key] = replace(role, **{field_name: current + (target,)})
        return True

    async def detach(self, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        relation = RelationType(relation)

        if relation == RelationType.CAPABILITY_PERMISSION:
            capability = self._get_capability(owner, guard)
            if target not in capability.permissions:
                return False
            self._capabilities[capability.key] = replace(
                capability, permissions=_without(capability.permissions, target)
            )
            return True

        role = self._get_role(owner, guard)
        field_name = {
            RelationType.ROLE_PERMISSION: "permissions",
            RelationType.ROLE_CAPABILITY: "capabilities",
            RelationType.ROLE_PARENT: "parent_names",
        }[relation]

        current = getattr(role, field_name)
        if target not in current:
            return False
        self._roles[role.key] = replace(role, **{field_name: _without(current, target)})
        return True

    async def set_role_parents(self, role: str, parents: Sequence[str], guard: str) -> None:
        record = self._get_role(role, guard)
        self._roles[record.key] = replace(record, parent_names=tuple(parents))

    # Subject grants

    async def assign(self, assignment: SubjectAssignment) -> bool:
        grants = self._assignments.setdefault(assignment.subject.key, {})
        identity = assignment.identity()
        if identity in grants:
            return False
        grants[identity] = assignment
        return True

    async def unassign(self, assignment: SubjectAssignment) -> bool:
        grants = self._assignments.get(assignment.subject.key, {})
        return grants.pop(assignment.identity(), None) is not None

    async def load_subject_assignments(self, subject: SubjectReference) -> List[SubjectAssignment]:
        return list(self._assignments.get(subject.key, {}).values())

    # Helpers

    def _get_role(self, name: str, guard: str) -> RoleRecord:
        record = self._roles.get((name, guard))
        if record is None:
            raise RoleNotFoundError.with_name(name, guard)
        return record

    def _get_capability(self, name: str, guard: str) -> CapabilityRecord:
        record = self._capabilities.get((name, guard))
        if record is None:
            raise CapabilityNotFoundError.with_name(name, guard)
        return record

    def _require_permissions(self, names: Sequence[str], guard: str) -> None:
        for name in names:
            if (name, guard) not in self._permissions:
                raise PermissionNotFoundError.with_name(name, guard)

    def _require_capabilities(self, names: Sequence[str], guard: str) -> None:
        for name in names:
            if (name, guard) not in self._capabilities:
                raise CapabilityNotFoundError.with_name(name, guard)

    def _drop_assignments(self, kind: AssignmentKind, name: str, guard: str) -> None:
        for grants in self._assignments.values():
            stale = [
                identity for identity, grant in grants.items()
                if grant.kind == kind and grant.name == name and grant.guard == guard
            ]
            for identity in stale:
                del grants[identity]


def _without(names: Tuple[str, ...], name: str) -> Tuple[str, ...]:
    return tuple(n for n in names if n != name)


def _now() -> datetime:
    return datetime.now(timezone.utc)
