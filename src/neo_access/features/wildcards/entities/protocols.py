"""Protocol interfaces for wildcard permission handlers."""

from abc import abstractmethod
from typing import Protocol, runtime_checkable, Iterable, List, TYPE_CHECKING

if TYPE_CHECKING:
    from ...permissions.entities.permission import PermissionRecord


@runtime_checkable
class WildcardHandler(Protocol):
    """Contract shared by the wildcard dialects.

    Matching is pure and synchronous and never raises. Every character other
    than the token is escaped before compiling, so any string is a valid
    pattern; one without a token compares literally.
    """

    @abstractmethod
    def matches(self, pattern: str, permission: str) -> bool:
        """Check if a pattern matches a permission name."""
        ...

    @abstractmethod
    def contains_wildcard(self, pattern: str) -> bool:
        """Check if a string contains the wildcard token."""
        ...

    @abstractmethod
    def get_matching_permissions(
        self,
        pattern: str,
        permissions: Iterable["PermissionRecord"]
    ) -> List["PermissionRecord"]:
        """Filter permission records whose name matches the pattern."""
        ...

    @abstractmethod
    def expand(self, pattern: str, permission_names: Iterable[str]) -> List[str]:
        """Expand a pattern against known permission names."""
        ...

    @abstractmethod
    def clear_cache(self) -> None:
        """Drop every compiled pattern."""
        ...
