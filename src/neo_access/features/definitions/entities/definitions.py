"""Declarative permission, role and capability definitions.

Definitions are plain data (a mapping or a JSON file) describing the
authorization model of an application. Permissions may be given as bare
names; roles reference parents through ``inherits``.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ...permissions.entities import CapabilityRecord, PermissionRecord, RoleRecord


class PermissionDefinition(BaseModel):
    """A single permission to be present in the store."""

    name: str = Field(..., min_length=1, description="Permission name, e.g. 'article:edit'")
    guard: Optional[str] = Field(default=None, description="Guard override")
    label: Optional[str] = None
    description: Optional[str] = None
    feature: Optional[str] = Field(default=None, description="Feature flag gating this permission")

    def to_record(self, guard: str) -> PermissionRecord:
        return PermissionRecord(
            name=self.name,
            guard=self.guard or guard,
            label=self.label,
            description=self.description,
            feature=self.feature,
        )


class CapabilityDefinition(BaseModel):
    """A named group of permissions."""

    name: str = Field(..., min_length=1)
    guard: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    label: Optional[str] = None
    description: Optional[str] = None
    feature: Optional[str] = None

    def to_record(self, guard: str) -> CapabilityRecord:
        return CapabilityRecord(
            name=self.name,
            guard=self.guard or guard,
            permissions=tuple(self.permissions),
            label=self.label,
            description=self.description,
            feature=self.feature,
        )


class RoleDefinition(BaseModel):
    """A role with its direct permissions, capabilities and parents."""

    name: str = Field(..., min_length=1)
    guard: Optional[str] = None
    inherits: List[str] = Field(default_factory=list, description="Parent role names")
    permissions: List[str] = Field(default_factory=list)
    capabilities: List[str] = Field(default_factory=list)
    label: Optional[str] = None
    description: Optional[str] = None
    feature: Optional[str] = None

    def to_record(self, guard: str) -> RoleRecord:
        return RoleRecord(
            name=self.name,
            guard=self.guard or guard,
            parent_names=tuple(self.inherits),
            permissions=tuple(self.permissions),
            capabilities=tuple(self.capabilities),
            label=self.label,
            description=self.description,
            feature=self.feature,
        )


class AccessDefinitions(BaseModel):
    """The complete declarative authorization model."""

    permissions: List[PermissionDefinition] = Field(default_factory=list)
    roles: List[RoleDefinition] = Field(default_factory=list)
    capabilities: List[CapabilityDefinition] = Field(default_factory=list)

    @field_validator("permissions", mode="before")
    @classmethod
    def expand_permission_names(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v

    @model_validator(mode="after")
    def validate_unique_names(self) -> "AccessDefinitions":
        for section in ("permissions", "roles", "capabilities"):
            seen: Set[tuple] = set()
            for definition in getattr(self, section):
                key = (definition.name, definition.guard)
                if key in seen:
                    raise ValueError(f"Duplicate {section[:-1]} definition: {definition.name}")
                seen.add(key)
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AccessDefinitions":
        return cls.model_validate(dict(data))

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "AccessDefinitions":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_mapping(json.load(f))

    def guards(self, default_guard: str) -> List[str]:
        """Every guard named by a definition, in first-seen order."""
        names = [
            d.guard or default_guard
            for d in [*self.permissions, *self.capabilities, *self.roles]
        ]
        return list(dict.fromkeys(names)) or [default_guard]

    def permission_records(self, guard: str, default_guard: str) -> List[PermissionRecord]:
        """Declared permissions of a guard plus any name referenced by its roles or capabilities."""
        records: Dict[str, PermissionRecord] = {}
        for definition in self.permissions:
            if (definition.guard or default_guard) == guard:
                records.setdefault(definition.name, definition.to_record(default_guard))

        referenced = [
            name
            for definition in [*self.capabilities, *self.roles]
            if (definition.guard or default_guard) == guard
            for name in definition.permissions
        ]
        for name in referenced:
            records.setdefault(name, PermissionRecord(name=name, guard=guard))
        return list(records.values())

    def capability_records(self, guard: str, default_guard: str) -> List[CapabilityRecord]:
        return [
            d.to_record(default_guard)
            for d in self.capabilities
            if (d.guard or default_guard) == guard
        ]

    def role_records(self, guard: str, default_guard: str) -> List[RoleRecord]:
        return [
            d.to_record(default_guard)
            for d in self.roles
            if (d.guard or default_guard) == guard
        ]
