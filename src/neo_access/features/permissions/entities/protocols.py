"""Protocol interfaces for the authoritative authorization store.

The store owns permission, role and capability records, the many-to-many
links between them and the grants held by subjects. The access layer only
loads snapshots and issues mutations; it never maps storage itself.
"""

from abc import abstractmethod
from typing import Protocol, runtime_checkable, List, Optional, Sequence

from ....config.constants import RelationType
from ....core.value_objects import SubjectReference
from .permission import PermissionRecord
from .role import RoleRecord
from .capability import CapabilityRecord
from .assignment import SubjectAssignment


@runtime_checkable
class AuthorizationStore(Protocol):
    """Protocol for the authoritative store of authorization definitions."""

    # Snapshot loading

    @abstractmethod
    async def load_all_permissions(self, guard: Optional[str] = None) -> List[PermissionRecord]:
        """Load every permission, optionally restricted to one guard."""
        ...

    @abstractmethod
    async def load_all_roles(self, guard: Optional[str] = None) -> List[RoleRecord]:
        """Load every role with its parent names, permissions and capabilities."""
        ...

    @abstractmethod
    async def load_all_capabilities(self, guard: Optional[str] = None) -> List[CapabilityRecord]:
        """Load every capability with its permission names."""
        ...

    # Definition mutations

    @abstractmethod
    async def create_permission(self, record: PermissionRecord) -> PermissionRecord:
        """Create a permission; raises PermissionAlreadyExistsError on duplicates."""
        ...

    @abstractmethod
    async def create_role(self, record: RoleRecord) -> RoleRecord:
        """Create a role; raises RoleAlreadyExistsError on duplicates."""
        ...

    @abstractmethod
    async def create_capability(self, record: CapabilityRecord) -> CapabilityRecord:
        """Create a capability; raises CapabilityAlreadyExistsError on duplicates."""
        ...

    @abstractmethod
    async def delete_permission(self, name: str, guard: str) -> bool:
        """Delete a permission and every link to it."""
        ...

    @abstractmethod
    async def delete_role(self, name: str, guard: str) -> bool:
        """Delete a role and every link to it."""
        ...

    @abstractmethod
    async def delete_capability(self, name: str, guard: str) -> bool:
        """Delete a capability and every link to it."""
        ...

    # Relations

    @abstractmethod
    async def attach(self, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        """Link ``target`` to ``owner``; False when the link already existed."""
        ...

    @abstractmethod
    async def detach(self, relation: RelationType, owner: str, target: str, guard: str) -> bool:
        """Unlink ``target`` from ``owner``; False when there was no link."""
        ...

    @abstractmethod
    async def set_role_parents(self, role: str, parents: Sequence[str], guard: str) -> None:
        """Replace the declared parent list of a role, keeping its order."""
        ...

    # Subject grants

    @abstractmethod
    async def assign(self, assignment: SubjectAssignment) -> bool:
        """Record a grant; False when the subject already held it."""
        ...

    @abstractmethod
    async def unassign(self, assignment: SubjectAssignment) -> bool:
        """Remove a grant; False when the subject did not hold it."""
        ...

    @abstractmethod
    async def load_subject_assignments(self, subject: SubjectReference) -> List[SubjectAssignment]:
        """Load every grant held by a subject across guards and contexts."""
        ...
