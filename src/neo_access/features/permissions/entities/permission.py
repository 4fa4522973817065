"""Permission record for the neo-access permissions feature.

A permission is a named grant unique per guard. Roles and capabilities refer
to permissions by name; the authoritative store owns the records.
"""

from datetime import datetime
from typing import Optional, Dict, Any, Iterable, Tuple
from dataclasses import dataclass

from ....core.exceptions import ValidationError
from ....core.value_objects import ContextReference


def normalize_names(names: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Deduplicate a name sequence, keeping the first occurrence order."""
    if names is None:
        return ()
    if isinstance(names, str):
        names = (names,)
    return tuple(dict.fromkeys(names))


def require_name(value: Optional[str], field_name: str) -> None:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} must not be empty")


def datetime_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def datetime_from_str(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class PermissionRecord:
    """Immutable permission definition."""

    name: str
    guard: str
    id: Optional[Any] = None
    label: Optional[str] = None
    description: Optional[str] = None
    feature: Optional[str] = None
    context: Optional[ContextReference] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        require_name(self.name, "Permission name")
        require_name(self.guard, "Permission guard")

    @property
    def key(self) -> Tuple[str, str]:
        """Name+guard identity of the permission."""
        return (self.name, self.guard)

    @property
    def context_type(self) -> Optional[str]:
        return self.context.type if self.context else None

    @property
    def context_id(self) -> Optional[str]:
        return self.context.id if self.context else None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe form used by the external cache."""
        return {
            "id": self.id,
            "name": self.name,
            "guard": self.guard,
            "label": self.label,
            "description": self.description,
            "feature": self.feature,
            "context": self.context.to_dict() if self.context else None,
            "created_at": datetime_to_str(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermissionRecord":
        return cls(
            id=data.get("id"),
            name=data["name"],
            guard=data["guard"],
            label=data.get("label"),
            description=data.get("description"),
            feature=data.get("feature"),
            context=ContextReference.from_dict(data.get("context")),
            created_at=datetime_from_str(data.get("created_at")),
        )

    def __str__(self) -> str:
        return f"Permission({self.name}@{self.guard})"
