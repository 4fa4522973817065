"""Outcome of a definition sync."""

from dataclasses import dataclass
from typing import Dict


@dataclass
class SyncResult:
    """Counts of what a sync created, updated and seeded."""

    permissions_created: int = 0
    roles_created: int = 0
    roles_updated: int = 0
    capabilities_created: int = 0
    assignments_seeded: int = 0

    def total_created(self) -> int:
        return self.permissions_created + self.roles_created + self.capabilities_created

    def total_updated(self) -> int:
        return self.roles_updated

    def has_changes(self) -> bool:
        return self.total_created() + self.total_updated() > 0 or self.assignments_seeded > 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "permissions_created": self.permissions_created,
            "roles_created": self.roles_created,
            "roles_updated": self.roles_updated,
            "capabilities_created": self.capabilities_created,
            "assignments_seeded": self.assignments_seeded,
        }
