"""Role records for the neo-access permissions feature.

``RoleRecord`` is the stored definition: direct permissions plus an ordered
list of declared parent names, which may reference roles that do not exist.
``ResolvedRole`` is the derived, never persisted expansion produced by the
hierarchy resolver.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass

from .permission import (
    datetime_from_str,
    datetime_to_str,
    normalize_names,
    require_name,
)


@dataclass(frozen=True)
class RoleRecord:
    """Immutable role definition with declared inheritance."""

    name: str
    guard: str
    parent_names: Tuple[str, ...] = ()
    permissions: Tuple[str, ...] = ()
    capabilities: Tuple[str, ...] = ()
    id: Optional[Any] = None
    label: Optional[str] = None
    description: Optional[str] = None
    feature: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        require_name(self.name, "Role name")
        require_name(self.guard, "Role guard")
        object.__setattr__(self, "parent_names", normalize_names(self.parent_names))
        object.__setattr__(self, "permissions", normalize_names(self.permissions))
        object.__setattr__(self, "capabilities", normalize_names(self.capabilities))

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.guard)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "guard": self.guard,
            "parent_names": list(self.parent_names),
            "permissions": list(self.permissions),
            "capabilities": list(self.capabilities),
            "label": self.label,
            "description": self.description,
            "feature": self.feature,
            "created_at": datetime_to_str(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoleRecord":
        return cls(
            id=data.get("id"),
            name=data["name"],
            guard=data["guard"],
            parent_names=data.get("parent_names") or (),
            permissions=data.get("permissions") or (),
            capabilities=data.get("capabilities") or (),
            label=data.get("label"),
            description=data.get("description"),
            feature=data.get("feature"),
            created_at=datetime_from_str(data.get("created_at")),
        )

    def __str__(self) -> str:
        return f"Role({self.name}@{self.guard})"


@dataclass(frozen=True)
class ResolvedRole:
    """Cycle-free expansion of a role's inherited permissions and ancestor chain.

    ``inherited_permissions`` never repeats a direct permission. ``full_chain``
    lists existing ancestors first and ends with the role itself, while
    ``inherits_from`` keeps every declared parent, missing ones included.
    """

    name: str
    guard: str
    direct_permissions: Tuple[str, ...]
    inherited_permissions: Tuple[str, ...]
    inherits_from: Tuple[str, ...]
    full_chain: Tuple[str, ...]
    feature: Optional[str] = None

    def all_permissions(self) -> List[str]:
        """Direct then inherited permissions, deduplicated."""
        return list(dict.fromkeys(self.direct_permissions + self.inherited_permissions))

    def granted(self, permission: str) -> bool:
        return permission in self.direct_permissions or permission in self.inherited_permissions

    def is_inherited_permission(self, permission: str) -> bool:
        return permission in self.inherited_permissions

    def is_available(self, feature_active: bool = True) -> bool:
        """A role gated by a feature is only available while the feature is active."""
        return self.feature is None or feature_active

    @property
    def ancestors(self) -> Tuple[str, ...]:
        return self.full_chain[:-1]

    def __str__(self) -> str:
        return f"ResolvedRole({self.name}@{self.guard})"
