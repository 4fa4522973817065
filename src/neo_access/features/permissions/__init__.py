"""Permission, role and capability records and their stores.

Services are imported from ``neo_access.features.permissions.services``.
"""

from .entities import (
    AuthorizationStore,
    CapabilityRecord,
    PermissionRecord,
    ResolvedRole,
    RoleRecord,
    SubjectAssignment,
)
from .repositories import (
    AsyncPGAuthorizationStore,
    InMemoryAuthorizationStore,
)

__all__ = [
    "AuthorizationStore",
    "CapabilityRecord",
    "PermissionRecord",
    "ResolvedRole",
    "RoleRecord",
    "SubjectAssignment",
    "AsyncPGAuthorizationStore",
    "InMemoryAuthorizationStore",
]
