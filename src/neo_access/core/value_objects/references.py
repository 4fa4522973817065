"""Reference value objects for neo-access.

Subjects and contexts are opaque polymorphic references: the access layer only
needs a stable identity key for grant and cache bookkeeping, never the
concrete entity behind it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import ValidationError


@dataclass(frozen=True)
class SubjectReference:
    """Anything permissions can be granted to (user, API client, service account)."""

    type: str
    id: str
    guard: Optional[str] = None

    def __post_init__(self):
        if not self.type or not str(self.type).strip():
            raise ValidationError("Subject type must not be empty")
        if self.id is None or not str(self.id).strip():
            raise ValidationError("Subject id must not be empty")
        # Accept ints/UUIDs as ids but keep a string identity
        object.__setattr__(self, "id", str(self.id))

    @property
    def key(self) -> str:
        return f"{self.type}:{self.id}"

    def with_guard(self, guard: str) -> "SubjectReference":
        return SubjectReference(type=self.type, id=self.id, guard=guard)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id, "guard": self.guard}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectReference":
        return cls(type=data["type"], id=data["id"], guard=data.get("guard"))

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class ContextReference:
    """Tenant or scope qualifier (team, organization) partitioning grants.

    A context may name a type only, e.g. every team, when ``id`` is None.
    """

    type: str
    id: Optional[str] = None

    def __post_init__(self):
        if not self.type or not str(self.type).strip():
            raise ValidationError("Context type must not be empty")
        if self.id is not None:
            object.__setattr__(self, "id", str(self.id))

    @property
    def key(self) -> str:
        return f"{self.type}:{self.id if self.id is not None else '*'}"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "id": self.id}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ContextReference"]:
        if not data:
            return None
        return cls(type=data["type"], id=data.get("id"))

    def __str__(self) -> str:
        return self.key
