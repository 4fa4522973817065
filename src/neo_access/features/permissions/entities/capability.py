"""Capability record: an optional named grouping of permissions.

Capabilities can be attached to roles or (when enabled) assigned directly to
subjects. They never inherit from each other.
"""

from datetime import datetime
from typing import Optional, Dict, Any, Tuple
from dataclasses import dataclass

from .permission import (
    datetime_from_str,
    datetime_to_str,
    normalize_names,
    require_name,
)


@dataclass(frozen=True)
class CapabilityRecord:
    """Immutable capability definition."""

    name: str
    guard: str
    permissions: Tuple[str, ...] = ()
    id: Optional[Any] = None
    label: Optional[str] = None
    description: Optional[str] = None
    feature: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        require_name(self.name, "Capability name")
        require_name(self.guard, "Capability guard")
        object.__setattr__(self, "permissions", normalize_names(self.permissions))

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.guard)

    def has_permission(self, name: str) -> bool:
        return name in self.permissions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "guard": self.guard,
            "permissions": list(self.permissions),
            "label": self.label,
            "description": self.description,
            "feature": self.feature,
            "created_at": datetime_to_str(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapabilityRecord":
        return cls(
            id=data.get("id"),
            name=data["name"],
            guard=data["guard"],
            permissions=data.get("permissions") or (),
            label=data.get("label"),
            description=data.get("description"),
            feature=data.get("feature"),
            created_at=datetime_from_str(data.get("created_at")),
        )

    def __str__(self) -> str:
        return f"Capability({self.name}@{self.guard})"
