"""AsyncPG-based authorization store.

Concrete implementation of the AuthorizationStore protocol over an asyncpg
pool. Tables live in one schema:

- ``permissions``, ``roles`` (with an ordered ``parent_names text[]``) and
  ``capabilities``, each unique on ``(name, guard)``
- link tables ``permission_role``, ``capability_role`` and
  ``capability_permission`` referencing ids with ``ON DELETE CASCADE``
- ``subject_assignments`` keyed by subject, kind, name, guard and context
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

import asyncpg

from ....config.constants import AssignmentKind, DatabaseSchemas, RelationType
from ....core.exceptions import (
    CapabilityAlreadyExistsError,
    CapabilityNotFoundError,
    ConfigurationError,
    NeoAccessError,
    PermissionAlreadyExistsError,
    PermissionNotFoundError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
    StoreError,
)
from ....core.value_objects import ContextReference, SubjectReference
from ..entities import (
    CapabilityRecord,
    PermissionRecord,
    RoleRecord,
    SubjectAssignment,
)

logger = logging.getLogger(__name__)

_SCHEMA_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]{0,62}$")

# (link table, owner table, owner column, target table, target column)
_LINKS = {
    RelationType.ROLE_PERMISSION: ("permission_role", "roles", "role_id", "permissions", "permission_id"),
    RelationType.ROLE_CAPABILITY: ("capability_role", "roles", "role_id", "capabilities", "capability_id"),
    RelationType.CAPABILITY_PERMISSION: ("capability_permission", "capabilities", "capability_id", "permissions", "permission_id"),
}

_NOT_FOUND = {
    "roles": RoleNotFoundError,
    "permissions": PermissionNotFoundError,
    "capabilities": CapabilityNotFoundError,
}


def validate_schema_name(schema: str) -> str:
    """Reject schema names that are not plain SQL identifiers."""
    if not schema or not _SCHEMA_NAME.match(schema):
        raise ConfigurationError(f"Invalid schema name: {schema!r}")
    return schema


def _rows_affected(status: str) -> int:
    """Row count from an asyncpg command status such as ``INSERT 0 1``."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class AsyncPGAuthorizationStore:
    """AsyncPG implementation of the AuthorizationStore protocol."""

    def __init__(self, pool: asyncpg.Pool, schema: str = DatabaseSchemas.DEFAULT):
        self.pool = pool
        self.schema = validate_schema_name(schema)

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection and map driver failures to StoreError."""
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except NeoAccessError:
            raise
        except Exception as e:
            logger.error(f"Failed to {operation} in schema {self.schema}: {e}")
            raise StoreError(f"Failed to {operation}: {e}", details={"schema": self.schema})

    def _table(self, name: str) -> str:
        return f"{self.schema}.{name}"

    # Row builders

    @staticmethod
    def _context_from_row(row: Any) -> Optional[ContextReference]:
        if row["context_type"] is None:
            return None
        return ContextReference(type=row["context_type"], id=row["context_id"])

    def _build_permission_from_row(self, row: Any) -> PermissionRecord:
        return PermissionRecord(
            id=row["id"],
            name=row["name"],
            guard=row["guard"],
            label=row["label"],
            description=row["description"],
            feature=row["feature"],
            context=self._context_from_row(row),
            created_at=row["created_at"],
        )

    @staticmethod
    def _build_role_from_row(row: Any) -> RoleRecord:
        return RoleRecord(
            id=row["id"],
            name=row["name"],
            guard=row["guard"],
            parent_names=row["parent_names"] or (),
            permissions=row["permissions"] or (),
            capabilities=row["capabilities"] or (),
            label=row["label"],
            description=row["description"],
            feature=row["feature"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _build_capability_from_row(row: Any) -> CapabilityRecord:
        return CapabilityRecord(
            id=row["id"],
            name=row["name"],
            guard=row["guard"],
            permissions=row["permissions"] or (),
            label=row["label"],
            description=row["description"],
            feature=row["feature"],
            created_at=row["created_at"],
        )

    def _build_assignment_from_row(self, row: Any) -> SubjectAssignment:
        return SubjectAssignment(
            subject=SubjectReference(type=row["subject_type"], id=row["subject_id"]),
            kind=AssignmentKind(row["kind"]),
            name=row["name"],
            guard=row["guard"],
            context=self._context_from_row(row),
            granted_at=row["granted_at"],
        )

    # Snapshot loading

    async def load_all_permissions(self, guard: Optional[str] = None) -> List[PermissionRecord]:
        query = f"""
            SELECT id, name, guard, label, description, feature,
                   context_type, context_id, created_at
            FROM {self._table("permissions")}
            WHERE ($1::text IS NULL OR guard = $1)
            ORDER BY id
        """
        async with self._connection("load permissions") as conn:
            rows = await conn.fetch(query, guard)
        return [self._build_permission_from_row(row) for row in rows]

    async def load_all_roles(self, guard: Optional[str] = None) -> List[RoleRecord]:
        query = f"""
            SELECT r.id, r.name, r.guard, r.parent_names, r.label, r.description,
                   r.feature, r.created_at,
                   ARRAY(
                       SELECT p.name FROM {self._table("permission_role")} pr
                       JOIN {self._table("permissions")} p ON p.id = pr.permission_id
                       WHERE pr.role_id = r.id ORDER BY p.id
                   ) AS permissions,
                   ARRAY(
                       SELECT c.name FROM {self._table("capability_role")} cr
                       JOIN {self._table("capabilities")} c ON c.id = cr.capability_id
                       WHERE cr.role_id = r.id ORDER BY c.id
                   ) AS capabilities
            FROM {self._table("roles")} r
            WHERE ($1::text IS NULL OR r.guard = $1)
            ORDER BY r.id
        """
        async with self._connection("load roles") as conn:
            rows = await conn.fetch(query, guard)
        return [self._build_role_from_row(row) for row in rows]

    async def load_all_capabilities(self, guard: Optional[str] = None) -> List[CapabilityRecord]:
        query = f"""
            SELECT c.id, c.name, c.guard, c.label, c.description, c.feature, c.created_at,
                   ARRAY(
                       SELECT p.name FROM {self._table("capability_permission")} cp
                       JOIN {self._table("permissions")} p ON p.id = cp.permission_id
                       WHERE cp.capability_id = c.id ORDER BY p.id
                   ) AS permissions
            FROM {self._table("capabilities")} c
            WHERE ($1::text IS NULL OR c.guard = $1)
            ORDER BY c.id
        """
        async with self._connection("load capabilities") as conn:
            rows = await conn.fetch(query, guard)
        return [self._build_capability_from_row(row) for row in rows]

    # Definition mutations

    async def create_permission(self, record: PermissionRecord) -> PermissionRecord:
        query = f"""
            INSERT INTO {self._table("permissions")}
                (name, guard, label, description, feature, context_type, context_id)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING id, name, guard, label, description, feature,
                      context_type, context_id, created_at
        """
        async with self._connection("create permission") as conn:
            try:
                row = await conn.fetchrow(
                    query, record.name, record.guard, record.label, record.description,
                    record.feature, record.context_type, record.context_id,
                )
            except asyncpg.UniqueViolationError:
                raise PermissionAlreadyExistsError(record.name, record.guard)

        logger.info(f"Created permission: {record.name} in schema {self.schema}")
        return self._build_permission_from_row(row)

    async def create_role(self, record: RoleRecord) -> RoleRecord:
        query = f"""
            INSERT INTO {self._table("roles")}
                (name, guard, parent_names, label, description, feature)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id, created_at
        """
        async with self._connection("create role") as conn:
            async with conn.transaction():
                try:
                    row = await conn.fetchrow(
                        query, record.name, record.guard, list(record.parent_names),
                        record.label, record.description, record.feature,
                    )
                except asyncpg.UniqueViolationError:
                    raise RoleAlreadyExistsError(record.name, record.guard)

                for permission in record.permissions:
                    await self._link(conn, RelationType.ROLE_PERMISSION, record.name, permission, record.guard)
                for capability in record.capabilities:
                    await self._link(conn, RelationType.ROLE_CAPABILITY, record.name, capability, record.guard)

        logger.info(f"Created role: {record.name} in schema {self.schema}")
        return RoleRecord(
            id=row["id"],
            name=record.name,
            guard=record.guard,
            parent_names=record.parent_names,
            permissions=record.permissions,
            capabilities=record.capabilities,
            label=record.label,
            description=record.description,
            feature=record.feature,
            created_at=row["created_at"],
        )

    async def create_capability(self, record: CapabilityRecord) -> CapabilityRecord:
        query = f"""
            INSERT INTO {self._table("capabilities")}
                (name, guard, label, description, feature)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id, created_at
        """
        async with self._connection("create capability") as conn:
            async with conn.transaction():
                try:
                    row = await conn.fetchrow(
                        query, record.name, record.guard, record.label,
                        record.description, record.feature,
                    )
                except asyncpg.UniqueViolationError:
                    raise CapabilityAlreadyExistsError(record.name, record.guard)

                for permission in record.permissions:
                    await self._link(conn, RelationType.CAPABILITY_PERMISSION, record.name, permission, record.guard)

        logger.info(f"Created capability: {record.name} in schema {self.schema}")
        return CapabilityRecord(
            id=row["id"],
            name=record.name,
            guard=record.guard,
            permissions=record.permissions,
            label=record.label,
            description=record.description,
            feature=record.feature,
            created_at=row["created_at"],
        )

    async def _delete(self, table: str, kind: AssignmentKind, name: str, guard: str) -> bool:
        async with self._connection(f"delete {kind.value}") as conn:
            async with conn.transaction():
                status = await conn.execute(
                    f"DELETE FROM {self._table(table)} WHERE name = $1 AND guard = $2",
                    name, guard,
                )
                await conn.execute(
                    f"""DELETE FROM {self._table("subject_assignments")}
                        WHERE kind = $1 AND name = $2 AND guard = $3""",
                    kind.value, name, guard,
                )
        return _rows_affected(status) > 0

    async def delete_permission(self, name: str, guard: str) -> bool:
        return await self._delete("permissions", AssignmentKind.PERMISSION, name, guard)

    async def delete_role(self, name: str, guard: str) -> bool:
        return await self._delete("roles", AssignmentKind.ROLE, name, guard)

    async def delete_capability(self, name: str, guard: str) -> bool:
        return await self._delete("capabilities", AssignmentKind.CAPABILITY, name, guard)

    # Relations

    async def _require_id(self, conn: asyncpg.Connection, table: str, name: str, guard: str) -> Any:
        entity_id = await conn.fetchval(
            f"SELECT id FROM {self._table(table)} WHERE name = $1 AND guard = $2",
            name, guard,
        )
        if entity_id is None:
            raise _NOT_FOUND[table].with_name(name, guard)
        return entity_id

    async def _link(self, conn: asyncpg.Connection, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        link_table, owner_table, owner_column, target_table, target_column = _LINKS[relation]
        owner_id = await self._require_id(conn, owner_table, owner, guard)
        target_id = await self._require_id(conn, target_table, target, guard)
        status = await conn.execute(
            f"""INSERT INTO {self._table(link_table)} ({owner_column}, {target_column})
                VALUES ($1, $2) ON CONFLICT DO NOTHING""",
            owner_id, target_id,
        )
        return _rows_affected(status) > 0

    async def attach(self, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        relation = RelationType(relation)

        async with self._connection(f"attach {relation.value}") as conn:
            if relation == RelationType.ROLE_PARENT:
                await self._require_id(conn, "roles", owner, guard)
                status = await conn.execute(
                    f"""UPDATE {self._table("roles")}
                        SET parent_names = array_append(parent_names, $3)
                        WHERE name = $1 AND guard = $2 AND NOT ($3 = ANY(parent_names))""",
                    owner, guard, target,
                )
                return _rows_affected(status) > 0

            return await self._link(conn, relation, owner, target, guard)

    async def detach(self, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        relation = RelationType(relation)

        async with self._connection(f"detach {relation.value}") as conn:
            if relation == RelationType.ROLE_PARENT:
                await self._require_id(conn, "roles", owner, guard)
                status = await conn.execute(
                    f"""UPDATE {self._table("roles")}
                        SET parent_names = array_remove(parent_names, $3)
                        WHERE name = $1 AND guard = $2 AND $3 = ANY(parent_names)""",
                    owner, guard, target,
                )
                return _rows_affected(status) > 0

            link_table, owner_table, owner_column, target_table, target_column = _LINKS[relation]
            owner_id = await self._require_id(conn, owner_table, owner, guard)
            status = await conn.execute(
                f"""DELETE FROM {self._table(link_table)} l
                    USING {self._table(target_table)} t
                    WHERE l.{owner_column} = $1 AND l.{target_column} = t.id
                      AND t.name = $2 AND t.guard = $3""",
                owner_id, target, guard,
            )
            return _rows_affected(status) > 0

    async def set_role_parents(self, role: str, parents: Sequence[str], guard: str) -> None:
        async with self._connection("set role parents") as conn:
            status = await conn.execute(
                f"UPDATE {self._table('roles')} SET parent_names = $3 WHERE name = $1 AND guard = $2",
                role, guard, list(parents),
            )
            if _rows_affected(status) == 0:
                raise RoleNotFoundError.with_name(role, guard)

    # Subject grants

    async def assign(self, assignment: SubjectAssignment) -> bool:
        context = assignment.context
        async with self._connection("assign") as conn:
            status = await conn.execute(
                f"""INSERT INTO {self._table("subject_assignments")}
                        (subject_type, subject_id, kind, name, guard,
                         context_type, context_id, granted_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    ON CONFLICT DO NOTHING""",
                assignment.subject.type, assignment.subject.id, assignment.kind.value,
                assignment.name, assignment.guard,
                context.type if context else None, context.id if context else None,
                assignment.granted_at,
            )
        return _rows_affected(status) > 0

    async def unassign(self, assignment: SubjectAssignment) -> bool:
        context = assignment.context
        async with self._connection("unassign") as conn:
            status = await conn.execute(
                f"""DELETE FROM {self._table("subject_assignments")}
                    WHERE subject_type = $1 AND subject_id = $2 AND kind = $3
                      AND name = $4 AND guard = $5
                      AND context_type IS NOT DISTINCT FROM $6::text
                      AND context_id IS NOT DISTINCT FROM $7::text""",
                assignment.subject.type, assignment.subject.id, assignment.kind.value,
                assignment.name, assignment.guard,
                context.type if context else None, context.id if context else None,
            )
        return _rows_affected(status) > 0

    async def load_subject_assignments(self, subject: SubjectReference) -> List[SubjectAssignment]:
        query = f"""
            SELECT subject_type, subject_id, kind, name, guard,
                   context_type, context_id, granted_at
            FROM {self._table("subject_assignments")}
            WHERE subject_type = $1 AND subject_id = $2
            ORDER BY granted_at
        """
        async with self._connection("load subject assignments") as conn:
            rows = await conn.fetch(query, subject.type, subject.id)
        return [self._build_assignment_from_row(row) for row in rows]
