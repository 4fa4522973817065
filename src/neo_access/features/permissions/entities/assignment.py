"""Subject assignment: one grant of a permission, role or capability to a subject."""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from dataclasses import dataclass, field

from ....config.constants import AssignmentKind
from ....core.value_objects import ContextReference, SubjectReference
from .permission import datetime_from_str, datetime_to_str, require_name


@dataclass(frozen=True)
class SubjectAssignment:
    """A grant held by a subject, optionally scoped to a context."""

    subject: SubjectReference
    kind: AssignmentKind
    name: str
    guard: str
    context: Optional[ContextReference] = None
    granted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def __post_init__(self):
        require_name(self.name, "Assignment name")
        require_name(self.guard, "Assignment guard")
        object.__setattr__(self, "kind", AssignmentKind(self.kind))

    @property
    def is_global(self) -> bool:
        return self.context is None

    def applies_to(self, context: Optional[ContextReference], global_fallback: bool = True) -> bool:
        """Whether this grant counts for a check made in ``context``.

        A grant scoped to a type-only context applies to every context of that
        type. Global grants apply to contextual checks only with the fallback.
        """
        if self.context is None:
            return context is None or global_fallback
        if context is None:
            return False
        if self.context.type != context.type:
            return False
        return self.context.id is None or self.context.id == context.id

    def identity(self) -> tuple:
        """Identity used to deduplicate grants in a store."""
        return (
            self.subject.key,
            self.kind.value,
            self.name,
            self.guard,
            self.context.key if self.context else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject.to_dict(),
            "kind": self.kind.value,
            "name": self.name,
            "guard": self.guard,
            "context": self.context.to_dict() if self.context else None,
            "granted_at": datetime_to_str(self.granted_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectAssignment":
        kwargs: Dict[str, Any] = {}
        if data.get("granted_at"):
            kwargs["granted_at"] = datetime_from_str(data["granted_at"])
        return cls(
            subject=SubjectReference.from_dict(data["subject"]),
            kind=AssignmentKind(data["kind"]),
            name=data["name"],
            guard=data["guard"],
            context=ContextReference.from_dict(data.get("context")),
            **kwargs,
        )
