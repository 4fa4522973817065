"""Permission feature entities and protocols."""

from .permission import PermissionRecord
from .role import RoleRecord, ResolvedRole
from .capability import CapabilityRecord
from .assignment import SubjectAssignment
from .protocols import AuthorizationStore

__all__ = [
    "PermissionRecord",
    "RoleRecord",
    "ResolvedRole",
    "CapabilityRecord",
    "SubjectAssignment",
    "AuthorizationStore",
]
