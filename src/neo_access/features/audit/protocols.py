"""Protocol for audit trails of authorization events."""

from abc import abstractmethod
from typing import List, Optional, Protocol, runtime_checkable

from ...config.constants import AssignmentKind
from ...core.value_objects import ContextReference, SubjectReference


@runtime_checkable
class AuditLogger(Protocol):
    """Receiver of subject grant changes, checks and denials.

    Implementations may write to a log, a database table or an external
    audit service. ``kind`` is the kind of entity involved.
    """

    @abstractmethod
    async def log_granted(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        names: List[str],
        context: Optional[ContextReference] = None,
    ) -> None:
        """Permissions granted, roles or capabilities assigned."""
        ...

    @abstractmethod
    async def log_revoked(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        names: List[str],
        context: Optional[ContextReference] = None,
    ) -> None:
        """Permissions revoked, roles or capabilities removed."""
        ...

    @abstractmethod
    async def log_check(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        name: str,
        result: bool,
        context: Optional[ContextReference] = None,
    ) -> None:
        ...

    @abstractmethod
    async def log_access_denied(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        name: str,
        context: Optional[ContextReference] = None,
    ) -> None:
        ...
