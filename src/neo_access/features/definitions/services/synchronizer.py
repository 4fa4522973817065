"""Synchronizes declarative definitions into the authoritative store."""

import logging
from typing import TYPE_CHECKING, List, Optional

from ....config.constants import RelationType
from ....core.exceptions import ConfigurationError
from ...permissions.entities import RoleRecord
from ..entities import AccessDefinitions, SyncResult

if TYPE_CHECKING:
    from ...permissions.services.access_service import AccessService

logger = logging.getLogger(__name__)


class DefinitionSynchronizer:
    """Creates missing definitions and reconciles role parents.

    The prospective hierarchy of every guard is resolved before anything is
    written, so a cycle aborts the sync with the store untouched. Relations
    are attached for newly created roles and capabilities, and for existing
    ones too when seeding. The registrar is invalidated once at the end.
    """

    def __init__(self, service: "AccessService"):
        self.service = service
        self.store = service.store
        self.registrar = service.registrar
        self.resolver = service.resolver
        self.settings = service.settings

    async def sync(
        self,
        definitions: AccessDefinitions,
        guard: Optional[str] = None,
        seed: bool = False,
    ) -> SyncResult:
        """Bring the store in line with ``definitions``.

        Args:
            definitions: Declarative model to apply
            guard: Guard for definitions that do not name one
            seed: Also attach relations of roles and capabilities that already exist

        Returns:
            Counts of created, updated and seeded items

        Raises:
            CircularRoleInheritanceError: if the definitions would close a cycle
            ConfigurationError: if capabilities are defined while disabled
        """
        default_guard = guard or self.settings.default_guard
        if definitions.capabilities and not self.settings.capabilities_enabled:
            raise ConfigurationError("Capabilities are defined but disabled (NEO_ACCESS_CAPABILITIES_ENABLED)")

        guards = definitions.guards(default_guard)
        await self._validate_hierarchy(definitions, guards, default_guard)

        result = SyncResult()
        try:
            for guard_name in guards:
                await self._sync_guard(definitions, guard_name, default_guard, seed, result)
        finally:
            await self.registrar.forget_cached_permissions()

        logger.info(
            f"Synced definitions: {result.permissions_created} permissions, "
            f"{result.roles_created} roles, {result.capabilities_created} capabilities created; "
            f"{result.roles_updated} roles updated; {result.assignments_seeded} relations seeded"
        )
        return result

    async def _validate_hierarchy(
        self,
        definitions: AccessDefinitions,
        guards: List[str],
        default_guard: str,
    ) -> None:
        for guard_name in guards:
            declared = {r.name: r for r in definitions.role_records(guard_name, default_guard)}
            existing = await self.registrar.get_roles_for_guard(guard_name)
            prospective: List[RoleRecord] = [r for r in existing if r.name not in declared]
            self.resolver.validate(prospective + list(declared.values()))

    async def _sync_guard(
        self,
        definitions: AccessDefinitions,
        guard: str,
        default_guard: str,
        seed: bool,
        result: SyncResult,
    ) -> None:
        registry = await self.registrar.get_registry()

        for record in definitions.permission_records(guard, default_guard):
            if not registry.permission_exists(record.name, guard):
                await self.store.create_permission(record)
                result.permissions_created += 1

        for record in definitions.capability_records(guard, default_guard):
            if not registry.capability_exists(record.name, guard):
                await self.store.create_capability(record)
                result.capabilities_created += 1
                result.assignments_seeded += len(record.permissions)
            elif seed:
                result.assignments_seeded += await self._attach_all(
                    RelationType.CAPABILITY_PERMISSION, record.name, record.permissions, guard
                )

        for record in definitions.role_records(guard, default_guard):
            current = registry.role(record.name, guard)
            if current is None:
                await self.store.create_role(record)
                result.roles_created += 1
                result.assignments_seeded += len(record.permissions) + len(record.capabilities)
                continue

            if current.parent_names != record.parent_names:
                await self.store.set_role_parents(record.name, record.parent_names, guard)
                result.roles_updated += 1

            if seed:
                result.assignments_seeded += await self._attach_all(
                    RelationType.ROLE_PERMISSION, record.name, record.permissions, guard
                )
                result.assignments_seeded += await self._attach_all(
                    RelationType.ROLE_CAPABILITY, record.name, record.capabilities, guard
                )

    async def _attach_all(self, relation: RelationType, owner: str, targets, guard: str) -> int:
        attached = 0
        for target in targets:
            if await self.store.attach(relation, owner, target, guard):
                attached += 1
        return attached
