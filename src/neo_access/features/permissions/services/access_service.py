"""Access service for authorization orchestration.

Coordinates the authoritative store, the cache-backed registrar, the role
hierarchy resolver, the wildcard matcher and the feature gate. Every mutation
completes in the store and then invalidates the registrar before returning,
so the next read observes the new state.

Boolean checks deny rather than raise on unexpected failures. Configuration
errors (circular inheritance, strict feature mode) still propagate, and
``authorize`` is the explicit lookup-or-die entry point.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from ....config.constants import AssignmentKind, RelationType
from ....config.settings import AccessSettings, get_settings
from ....core.exceptions import (
    CapabilityNotFoundError,
    CircularRoleInheritanceError,
    ConfigurationError,
    FeatureAccessError,
    GuardMismatchError,
    PermissionNotFoundError,
    RoleNotFoundError,
    UnauthorizedError,
)
from ....core.value_objects import ContextReference, SubjectReference
from ...audit.audit_trail import AuditTrail
from ...audit.protocols import AuditLogger
from ...cache.entities.protocols import ExternalCache
from ...flags.feature_gate import FeatureGate
from ...registry.definition_registry import DefinitionRegistry
from ...registry.registrar import AccessRegistrar
from ...wildcards.entities.protocols import WildcardHandler
from ...wildcards.factory import create_wildcard_handler
from ..entities import (
    AuthorizationStore,
    CapabilityRecord,
    PermissionRecord,
    RoleRecord,
    SubjectAssignment,
)

logger = logging.getLogger(__name__)

PermissionRef = Union[str, PermissionRecord]
RoleRef = Union[str, RoleRecord]
CapabilityRef = Union[str, CapabilityRecord]


@dataclass
class SubjectGrants:
    """Effective grants of a subject for one guard and context."""

    permissions: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    capabilities: List[str] = field(default_factory=list)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (str, PermissionRecord, RoleRecord, CapabilityRecord)):
        return [value]
    return list(value)


class AccessService:
    """Service orchestrating definitions, subject grants and access checks."""

    def __init__(
        self,
        store: AuthorizationStore,
        registrar: Optional[AccessRegistrar] = None,
        settings: Optional[AccessSettings] = None,
        cache: Optional[ExternalCache] = None,
        wildcard_handler: Optional[WildcardHandler] = None,
        feature_gate: Optional[FeatureGate] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.registrar = registrar or AccessRegistrar(store, cache, self.settings)
        self.resolver = self.registrar.resolver
        self.feature_gate = feature_gate or FeatureGate(settings=self.settings)
        self.audit = AuditTrail(audit_logger, self.settings)

        if wildcard_handler is None and self.settings.wildcards_enabled:
            wildcard_handler = create_wildcard_handler(self.settings)
        self.wildcards = wildcard_handler

    # Guards and flags

    def _guard(self, guard: Optional[str]) -> str:
        return guard or self.settings.default_guard

    def _subject_guard(self, subject: SubjectReference) -> str:
        return subject.guard or self.settings.default_guard

    def _require_capabilities(self) -> None:
        if not self.settings.capabilities_enabled:
            raise ConfigurationError("Capabilities are disabled (NEO_ACCESS_CAPABILITIES_ENABLED)")

    def _require_direct_capabilities(self) -> None:
        if not self.settings.direct_capabilities_enabled:
            raise ConfigurationError(
                "Direct capability assignment is disabled (NEO_ACCESS_CAPABILITIES_DIRECT_ASSIGNMENT)"
            )

    def _check_context(self, context: Optional[ContextReference]) -> None:
        if context is not None and not self.settings.context_enabled:
            raise ConfigurationError("Context support is disabled (NEO_ACCESS_CONTEXT_ENABLED)")

    async def _invalidate(self) -> None:
        await self.registrar.forget_cached_permissions()

    # Definitions

    async def create_permission(
        self,
        name: str,
        guard: Optional[str] = None,
        label: Optional[str] = None,
        description: Optional[str] = None,
        feature: Optional[str] = None,
        context: Optional[ContextReference] = None,
    ) -> PermissionRecord:
        """Create a permission; raises PermissionAlreadyExistsError on duplicates."""
        self._check_context(context)
        record = PermissionRecord(
            name=name,
            guard=self._guard(guard),
            label=label,
            description=description,
            feature=feature,
            context=context,
        )
        created = await self.store.create_permission(record)
        await self._invalidate()
        logger.info(f"Created permission: {created.name} (guard {created.guard})")
        return created

    async def create_role(
        self,
        name: str,
        guard: Optional[str] = None,
        permissions: Iterable[str] = (),
        parents: Iterable[str] = (),
        capabilities: Iterable[str] = (),
        label: Optional[str] = None,
        description: Optional[str] = None,
        feature: Optional[str] = None,
    ) -> RoleRecord:
        """Create a role; raises RoleAlreadyExistsError on duplicates.

        Existing roles may already name the new role as a parent, so the
        prospective hierarchy is checked for cycles before anything is written.
        """
        record = RoleRecord(
            name=name,
            guard=self._guard(guard),
            parent_names=tuple(parents),
            permissions=tuple(permissions),
            capabilities=tuple(capabilities),
            label=label,
            description=description,
            feature=feature,
        )
        if record.capabilities:
            self._require_capabilities()

        existing = await self.registrar.get_roles_for_guard(record.guard)
        self.resolver.validate([r for r in existing if r.name != record.name] + [record])

        created = await self.store.create_role(record)
        await self._invalidate()
        logger.info(f"Created role: {created.name} (guard {created.guard})")
        return created

    async def create_capability(
        self,
        name: str,
        guard: Optional[str] = None,
        permissions: Iterable[str] = (),
        label: Optional[str] = None,
        description: Optional[str] = None,
        feature: Optional[str] = None,
    ) -> CapabilityRecord:
        """Create a capability; raises CapabilityAlreadyExistsError on duplicates."""
        self._require_capabilities()
        record = CapabilityRecord(
            name=name,
            guard=self._guard(guard),
            permissions=tuple(permissions),
            label=label,
            description=description,
            feature=feature,
        )
        created = await self.store.create_capability(record)
        await self._invalidate()
        logger.info(f"Created capability: {created.name} (guard {created.guard})")
        return created

    async def find_or_create_permission(self, name: str, guard: Optional[str] = None, **kwargs: Any) -> PermissionRecord:
        existing = await self.registrar.get_permission_by_name(name, self._guard(guard))
        return existing or await self.create_permission(name, guard, **kwargs)

    async def find_or_create_role(self, name: str, guard: Optional[str] = None, **kwargs: Any) -> RoleRecord:
        existing = await self.registrar.get_role_by_name(name, self._guard(guard))
        return existing or await self.create_role(name, guard, **kwargs)

    async def find_or_create_capability(self, name: str, guard: Optional[str] = None, **kwargs: Any) -> CapabilityRecord:
        self._require_capabilities()
        existing = await self.registrar.get_capability_by_name(name, self._guard(guard))
        return existing or await self.create_capability(name, guard, **kwargs)

    async def find_permission(self, name: str, guard: Optional[str] = None) -> PermissionRecord:
        """Lookup-or-die by name; raises PermissionNotFoundError."""
        guard = self._guard(guard)
        record = await self.registrar.get_permission_by_name(name, guard)
        if record is None:
            raise PermissionNotFoundError.with_name(name, guard)
        return record

    async def find_role(self, name: str, guard: Optional[str] = None) -> RoleRecord:
        """Lookup-or-die by name; raises RoleNotFoundError."""
        guard = self._guard(guard)
        record = await self.registrar.get_role_by_name(name, guard)
        if record is None:
            raise RoleNotFoundError.with_name(name, guard)
        return record

    async def find_capability(self, name: str, guard: Optional[str] = None) -> CapabilityRecord:
        """Lookup-or-die by name; raises CapabilityNotFoundError."""
        guard = self._guard(guard)
        record = await self.registrar.get_capability_by_name(name, guard)
        if record is None:
            raise CapabilityNotFoundError.with_name(name, guard)
        return record

    async def find_permission_by_id(self, entity_id: Any, guard: Optional[str] = None) -> PermissionRecord:
        for record in await self.registrar.get_permissions():
            if record.id == entity_id and (guard is None or record.guard == guard):
                return record
        raise PermissionNotFoundError.with_id(entity_id, guard)

    async def find_role_by_id(self, entity_id: Any, guard: Optional[str] = None) -> RoleRecord:
        for record in await self.registrar.get_roles():
            if record.id == entity_id and (guard is None or record.guard == guard):
                return record
        raise RoleNotFoundError.with_id(entity_id, guard)

    async def find_capability_by_id(self, entity_id: Any, guard: Optional[str] = None) -> CapabilityRecord:
        for record in await self.registrar.get_capabilities():
            if record.id == entity_id and (guard is None or record.guard == guard):
                return record
        raise CapabilityNotFoundError.with_id(entity_id, guard)

    async def delete_permission(self, name: str, guard: Optional[str] = None) -> bool:
        deleted = await self.store.delete_permission(name, self._guard(guard))
        await self._invalidate()
        if deleted:
            logger.info(f"Deleted permission: {name}")
        return deleted

    async def delete_role(self, name: str, guard: Optional[str] = None) -> bool:
        deleted = await self.store.delete_role(name, self._guard(guard))
        await self._invalidate()
        if deleted:
            logger.info(f"Deleted role: {name}")
        return deleted

    async def delete_capability(self, name: str, guard: Optional[str] = None) -> bool:
        self._require_capabilities()
        deleted = await self.store.delete_capability(name, self._guard(guard))
        await self._invalidate()
        if deleted:
            logger.info(f"Deleted capability: {name}")
        return deleted

    # Role and capability relations

    async def _relate(
        self,
        attach: bool,
        relation: RelationType,
        owner: str,
        targets: Sequence[str],
        guard: str,
    ) -> bool:
        changed = False
        try:
            for target in targets:
                if attach:
                    changed = await self.store.attach(relation, owner, target, guard) or changed
                else:
                    changed = await self.store.detach(relation, owner, target, guard) or changed
        finally:
            await self._invalidate()

        action = "Attached" if attach else "Detached"
        logger.info(f"{action} {relation.value} {', '.join(targets)} for {owner} (guard {guard})")
        return changed

    async def give_permission_to_role(
        self,
        role: str,
        permissions: Union[str, Iterable[str]],
        guard: Optional[str] = None,
    ) -> bool:
        guard = self._guard(guard)
        await self.find_role(role, guard)
        names = _as_list(permissions)
        for name in names:
            await self.find_permission(name, guard)
        return await self._relate(True, RelationType.ROLE_PERMISSION, role, names, guard)

    async def revoke_permission_from_role(
        self,
        role: str,
        permissions: Union[str, Iterable[str]],
        guard: Optional[str] = None,
    ) -> bool:
        guard = self._guard(guard)
        await self.find_role(role, guard)
        return await self._relate(False, RelationType.ROLE_PERMISSION, role, _as_list(permissions), guard)

    async def set_role_parents(self, role: str, parents: Iterable[str], guard: Optional[str] = None) -> RoleRecord:
        """Replace a role's declared parents after checking the result is acyclic.

        Raises:
            CircularRoleInheritanceError: if the new parents would close a cycle
        """
        guard = self._guard(guard)
        record = await self.find_role(role, guard)
        updated = replace(record, parent_names=tuple(parents))

        roles = await self.registrar.get_roles_for_guard(guard)
        self.resolver.validate([updated if r.name == role else r for r in roles])

        try:
            await self.store.set_role_parents(role, updated.parent_names, guard)
        finally:
            await self._invalidate()
        logger.info(f"Set parents of role {role} to [{', '.join(updated.parent_names)}]")
        return updated

    async def attach_capability_to_role(
        self,
        role: str,
        capabilities: Union[str, Iterable[str]],
        guard: Optional[str] = None,
    ) -> bool:
        self._require_capabilities()
        guard = self._guard(guard)
        await self.find_role(role, guard)
        names = _as_list(capabilities)
        for name in names:
            await self.find_capability(name, guard)
        return await self._relate(True, RelationType.ROLE_CAPABILITY, role, names, guard)

    async def detach_capability_from_role(
        self,
        role: str,
        capabilities: Union[str, Iterable[str]],
        guard: Optional[str] = None,
    ) -> bool:
        self._require_capabilities()
        guard = self._guard(guard)
        await self.find_role(role, guard)
        return await self._relate(False, RelationType.ROLE_CAPABILITY, role, _as_list(capabilities), guard)

    async def add_permission_to_capability(
        self,
        capability: str,
        permissions: Union[str, Iterable[str]],
        guard: Optional[str] = None,
    ) -> bool:
        self._require_capabilities()
        guard = self._guard(guard)
        await self.find_capability(capability, guard)
        names = _as_list(permissions)
        for name in names:
            await self.find_permission(name, guard)
        return await self._relate(True, RelationType.CAPABILITY_PERMISSION, capability, names, guard)

    async def remove_permission_from_capability(
        self,
        capability: str,
        permissions: Union[str, Iterable[str]],
        guard: Optional[str] = None,
    ) -> bool:
        self._require_capabilities()
        guard = self._guard(guard)
        await self.find_capability(capability, guard)
        return await self._relate(False, RelationType.CAPABILITY_PERMISSION, capability, _as_list(permissions), guard)

    # Subject grants

    async def _resolve_for_subject(self, kind: AssignmentKind, ref: Any, guard: str) -> str:
        """Name of the entity to grant, checked against the subject guard."""
        if kind == AssignmentKind.PERMISSION:
            lookup, mismatch, not_found = (
                self.registrar.get_permissions, GuardMismatchError.for_permission, PermissionNotFoundError
            )
        elif kind == AssignmentKind.ROLE:
            lookup, mismatch, not_found = (
                self.registrar.get_roles, GuardMismatchError.for_role, RoleNotFoundError
            )
        else:
            lookup, mismatch, not_found = (
                self.registrar.get_capabilities, GuardMismatchError.for_capability, CapabilityNotFoundError
            )

        if not isinstance(ref, str):
            if ref.guard != guard:
                raise mismatch(ref.name, ref.guard, guard)
            return ref.name

        records = await lookup()
        if any(r.name == ref and r.guard == guard for r in records):
            return ref
        other = next((r for r in records if r.name == ref), None)
        if other is not None:
            raise mismatch(ref, other.guard, guard)
        raise not_found.with_name(ref, guard)

    async def _grant(
        self,
        assign: bool,
        kind: AssignmentKind,
        subject: SubjectReference,
        refs: Any,
        context: Optional[ContextReference],
    ) -> bool:
        self._check_context(context)
        guard = self._subject_guard(subject)

        assignments = [
            SubjectAssignment(
                subject=subject,
                kind=kind,
                name=await self._resolve_for_subject(kind, ref, guard),
                guard=guard,
                context=context,
            )
            for ref in _as_list(refs)
        ]

        changed = False
        try:
            for assignment in assignments:
                if assign:
                    changed = await self.store.assign(assignment) or changed
                else:
                    changed = await self.store.unassign(assignment) or changed
        finally:
            await self._invalidate()

        names = [a.name for a in assignments]
        action = "Assigned" if assign else "Removed"
        logger.info(f"{action} {kind.value} {', '.join(names)} for subject {subject.key}")
        await self.audit.record_change(assign, subject, kind, names, context)
        return changed

    async def _sync_grants(
        self,
        kind: AssignmentKind,
        subject: SubjectReference,
        refs: Any,
        context: Optional[ContextReference],
    ) -> bool:
        """Replace the subject's grants of ``kind`` in one guard and context."""
        self._check_context(context)
        guard = self._subject_guard(subject)

        wanted = list(dict.fromkeys([
            await self._resolve_for_subject(kind, ref, guard) for ref in _as_list(refs)
        ]))
        current = [
            a for a in await self.store.load_subject_assignments(subject)
            if a.kind == kind and a.guard == guard and a.context == context
        ]
        current_names = [a.name for a in current]
        stale = [a for a in current if a.name not in wanted]
        missing = [name for name in wanted if name not in current_names]

        try:
            for assignment in stale:
                await self.store.unassign(assignment)
            for name in missing:
                await self.store.assign(SubjectAssignment(
                    subject=subject, kind=kind, name=name, guard=guard, context=context
                ))
        finally:
            await self._invalidate()

        logger.info(
            f"Synced {kind.value}s for subject {subject.key}: "
            f"{len(missing)} added, {len(stale)} removed"
        )
        await self.audit.record_change(False, subject, kind, [a.name for a in stale], context)
        await self.audit.record_change(True, subject, kind, missing, context)
        return bool(stale or missing)

    async def grant_permission(
        self,
        subject: SubjectReference,
        permissions: Union[PermissionRef, Iterable[PermissionRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        return await self._grant(True, AssignmentKind.PERMISSION, subject, permissions, context)

    async def revoke_permission(
        self,
        subject: SubjectReference,
        permissions: Union[PermissionRef, Iterable[PermissionRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        return await self._grant(False, AssignmentKind.PERMISSION, subject, permissions, context)

    async def sync_permissions(
        self,
        subject: SubjectReference,
        permissions: Union[PermissionRef, Iterable[PermissionRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        """Make the given permissions the subject's only direct grants in ``context``.

        Grants in other contexts and guards are kept. Returns whether anything changed.
        """
        return await self._sync_grants(AssignmentKind.PERMISSION, subject, permissions, context)

    async def assign_role(
        self,
        subject: SubjectReference,
        roles: Union[RoleRef, Iterable[RoleRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        return await self._grant(True, AssignmentKind.ROLE, subject, roles, context)

    async def remove_role(
        self,
        subject: SubjectReference,
        roles: Union[RoleRef, Iterable[RoleRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        return await self._grant(False, AssignmentKind.ROLE, subject, roles, context)

    async def sync_roles(
        self,
        subject: SubjectReference,
        roles: Union[RoleRef, Iterable[RoleRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        """Make the given roles the subject's only roles in ``context``."""
        return await self._sync_grants(AssignmentKind.ROLE, subject, roles, context)

    async def assign_capability(
        self,
        subject: SubjectReference,
        capabilities: Union[CapabilityRef, Iterable[CapabilityRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        self._require_direct_capabilities()
        return await self._grant(True, AssignmentKind.CAPABILITY, subject, capabilities, context)

    async def remove_capability(
        self,
        subject: SubjectReference,
        capabilities: Union[CapabilityRef, Iterable[CapabilityRef]],
        context: Optional[ContextReference] = None,
    ) -> bool:
        self._require_direct_capabilities()
        return await self._grant(False, AssignmentKind.CAPABILITY, subject, capabilities, context)

    # Effective grants

    async def _subject_assignments(
        self,
        subject: SubjectReference,
        guard: str,
        context: Optional[ContextReference],
    ) -> List[SubjectAssignment]:
        assignments = [a for a in await self.store.load_subject_assignments(subject) if a.guard == guard]
        if not self.settings.context_enabled:
            return assignments
        return [a for a in assignments if a.applies_to(context, self.settings.context_global_fallback)]

    async def get_subject_grants(
        self,
        subject: SubjectReference,
        context: Optional[ContextReference] = None,
    ) -> SubjectGrants:
        """Compute what a subject holds, restricted to available entities.

        Permissions are direct grants, the resolved permissions of assigned
        roles (with their capabilities) and directly assigned capabilities.
        """
        guard = self._subject_guard(subject)
        if not self.settings.context_enabled:
            context = None

        assignments = await self._subject_assignments(subject, guard, context)
        registry = await self.registrar.get_registry()
        availability: Dict[str, bool] = {}

        async def available(record: Any) -> bool:
            if record is None:
                return False
            feature = record.feature
            if not feature:
                return True
            if feature not in availability:
                availability[feature] = await self.feature_gate.is_available(subject, feature)
            return availability[feature]

        grants = SubjectGrants()
        permission_names: List[str] = []
        capability_names: List[str] = []

        for assignment in assignments:
            if assignment.kind == AssignmentKind.PERMISSION:
                permission_names.append(assignment.name)

            elif assignment.kind == AssignmentKind.ROLE:
                if not await available(registry.role(assignment.name, guard)):
                    continue
                grants.roles.append(assignment.name)
                resolved = registry.resolved_role(assignment.name, guard)
                permission_names.extend(resolved.all_permissions())
                capability_names.extend(registry.role_capabilities(assignment.name, guard))

            elif self.settings.direct_capabilities_enabled:
                capability_names.append(assignment.name)

        if self.settings.capabilities_enabled:
            for name in dict.fromkeys(capability_names):
                if await available(registry.capability(name, guard)):
                    grants.capabilities.append(name)
                    permission_names.extend(registry.capability_permissions(name, guard))

        for name in dict.fromkeys(permission_names):
            if await available(registry.permission(name, guard)):
                grants.permissions.append(name)

        grants.roles = list(dict.fromkeys(grants.roles))
        return grants

    def _permission_granted(self, granted: Sequence[str], permission: str) -> bool:
        if permission in granted:
            return True
        if self.wildcards is None:
            return False
        return any(self.wildcards.matches(pattern, permission) for pattern in granted)

    def _holds(self, kind: AssignmentKind, grants: SubjectGrants, name: str) -> bool:
        if kind == AssignmentKind.PERMISSION:
            return self._permission_granted(grants.permissions, name)
        if kind == AssignmentKind.ROLE:
            return name in grants.roles
        return name in grants.capabilities

    async def _check(
        self,
        kind: AssignmentKind,
        subject: SubjectReference,
        names: List[str],
        context: Optional[ContextReference],
        combine: Callable[[Iterable[bool]], bool],
    ) -> bool:
        """Check each name and combine the results, denying on unexpected errors."""
        try:
            grants = await self.get_subject_grants(subject, context)
            results = {name: self._holds(kind, grants, name) for name in names}
        except (CircularRoleInheritanceError, FeatureAccessError):
            raise
        except Exception as e:
            logger.error(f"Failed to check {kind.value}s {names} for subject {subject.key}: {e}")
            results = dict.fromkeys(names, False)

        await self.audit.record_checks(subject, kind, results, context)
        return combine(results.values())

    # Checks

    async def has_permission(
        self,
        subject: SubjectReference,
        permission: PermissionRef,
        context: Optional[ContextReference] = None,
    ) -> bool:
        return await self.has_all_permissions(subject, [permission], context)

    async def has_any_permission(
        self,
        subject: SubjectReference,
        permissions: Iterable[PermissionRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        names = [p if isinstance(p, str) else p.name for p in _as_list(permissions)]
        if not names:
            return False
        return await self._check(AssignmentKind.PERMISSION, subject, names, context, any)

    async def has_all_permissions(
        self,
        subject: SubjectReference,
        permissions: Iterable[PermissionRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        names = [p if isinstance(p, str) else p.name for p in _as_list(permissions)]
        return await self._check(AssignmentKind.PERMISSION, subject, names, context, all)

    async def has_role(
        self,
        subject: SubjectReference,
        role: RoleRef,
        context: Optional[ContextReference] = None,
    ) -> bool:
        """Whether the role is directly assigned (inherited roles do not count)."""
        return await self.has_all_roles(subject, [role], context)

    async def has_any_role(
        self,
        subject: SubjectReference,
        roles: Iterable[RoleRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        names = [r if isinstance(r, str) else r.name for r in _as_list(roles)]
        if not names:
            return False
        return await self._check(AssignmentKind.ROLE, subject, names, context, any)

    async def has_all_roles(
        self,
        subject: SubjectReference,
        roles: Iterable[RoleRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        names = [r if isinstance(r, str) else r.name for r in _as_list(roles)]
        return await self._check(AssignmentKind.ROLE, subject, names, context, all)

    async def has_exact_roles(
        self,
        subject: SubjectReference,
        roles: Iterable[RoleRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        """Whether the subject's assigned roles are exactly ``roles``, no more and no fewer."""
        names = [r if isinstance(r, str) else r.name for r in _as_list(roles)]
        try:
            grants = await self.get_subject_grants(subject, context)
        except (CircularRoleInheritanceError, FeatureAccessError):
            raise
        except Exception as e:
            logger.error(f"Failed to check roles {names} for subject {subject.key}: {e}")
            return False
        return set(grants.roles) == set(names)

    async def has_capability(
        self,
        subject: SubjectReference,
        capability: CapabilityRef,
        context: Optional[ContextReference] = None,
    ) -> bool:
        """Whether the subject holds the capability directly or through a role."""
        return await self.has_all_capabilities(subject, [capability], context)

    async def has_any_capability(
        self,
        subject: SubjectReference,
        capabilities: Iterable[CapabilityRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        names = [c if isinstance(c, str) else c.name for c in _as_list(capabilities)]
        if not names or not self.settings.capabilities_enabled:
            return False
        return await self._check(AssignmentKind.CAPABILITY, subject, names, context, any)

    async def has_all_capabilities(
        self,
        subject: SubjectReference,
        capabilities: Iterable[CapabilityRef],
        context: Optional[ContextReference] = None,
    ) -> bool:
        names = [c if isinstance(c, str) else c.name for c in _as_list(capabilities)]
        if not self.settings.capabilities_enabled:
            return False
        return await self._check(AssignmentKind.CAPABILITY, subject, names, context, all)

    async def authorize(
        self,
        subject: SubjectReference,
        permissions: Union[PermissionRef, Iterable[PermissionRef]],
        context: Optional[ContextReference] = None,
    ) -> None:
        """Lookup-or-die check; raises UnauthorizedError naming what is missing."""
        names = [p if isinstance(p, str) else p.name for p in _as_list(permissions)]

        try:
            grants = await self.get_subject_grants(subject, context)
            missing = [name for name in names if not self._permission_granted(grants.permissions, name)]
        except (CircularRoleInheritanceError, FeatureAccessError):
            raise
        except Exception as e:
            logger.error(f"Failed to authorize subject {subject.key}: {e}")
            missing = names

        if missing:
            logger.debug(f"Denied {missing} for subject {subject.key}")
            await self.audit.record_denials(subject, AssignmentKind.PERMISSION, missing, context)
            raise UnauthorizedError(subject.key, missing)

    # Read models

    async def get_permission_names(
        self,
        subject: SubjectReference,
        context: Optional[ContextReference] = None,
    ) -> List[str]:
        return (await self.get_subject_grants(subject, context)).permissions

    async def get_role_names(
        self,
        subject: SubjectReference,
        context: Optional[ContextReference] = None,
    ) -> List[str]:
        return (await self.get_subject_grants(subject, context)).roles

    async def get_capability_names(
        self,
        subject: SubjectReference,
        context: Optional[ContextReference] = None,
    ) -> List[str]:
        if not self.settings.capabilities_enabled:
            return []
        return (await self.get_subject_grants(subject, context)).capabilities

    async def get_authorization_data(
        self,
        subject: SubjectReference,
        context: Optional[ContextReference] = None,
    ) -> Dict[str, List[str]]:
        """Serializable summary of a subject's effective grants."""
        grants = await self.get_subject_grants(subject, context)
        data = {
            "permissions": grants.permissions,
            "roles": grants.roles,
        }
        if self.settings.capabilities_enabled:
            data["capabilities"] = grants.capabilities
        return data

    async def get_registry(self) -> DefinitionRegistry:
        return await self.registrar.get_registry()

    async def clear_cache(self) -> bool:
        if self.wildcards is not None:
            self.wildcards.clear_cache()
        return await self.registrar.forget_cached_permissions()
