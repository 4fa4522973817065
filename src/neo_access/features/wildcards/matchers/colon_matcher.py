"""Colon-delimited wildcard matcher.

Supports the following patterns:
- ``article:*`` matches ``article:view`` and ``article:view:all``
- ``*:view`` matches ``article:view`` and ``user:view``
- ``*`` matches everything
- ``article:edit,delete`` matches ``article:edit`` and ``article:delete``

A wildcard matches one segment, except a trailing wildcard which may cross
delimiters.
"""

import re
from typing import Dict, Iterable, List, Optional, Pattern, TYPE_CHECKING

from ....config.constants import WildcardDefaults
from ..entities.pattern_cache import BoundedPatternCache

if TYPE_CHECKING:
    from ...permissions.entities.permission import PermissionRecord


class ColonWildcardMatcher:
    """Wildcard handler for ``resource:action`` style permission names."""

    def __init__(
        self,
        token: str = WildcardDefaults.TOKEN,
        part_delimiter: str = WildcardDefaults.PART_DELIMITER,
        subpart_delimiter: str = WildcardDefaults.SUBPART_DELIMITER,
        cache_size: int = WildcardDefaults.PATTERN_CACHE_SIZE,
    ):
        self.token = token
        self.part_delimiter = part_delimiter
        self.subpart_delimiter = subpart_delimiter
        self._segment = f"[^{re.escape(part_delimiter)}]+"
        self._cache = BoundedPatternCache(cache_size)

    def matches(self, pattern: str, permission: str) -> bool:
        if pattern == permission:
            return True

        if pattern == self.token:
            return True

        # Subpart alternatives apply with or without a wildcard token
        if self.subpart_delimiter in pattern:
            return self._matches_with_subparts(pattern, permission)

        if not self.contains_wildcard(pattern):
            return False

        regex = self._cache.get_or_compile(pattern, self._compile)

        return regex.fullmatch(permission) is not None

    def contains_wildcard(self, pattern: str) -> bool:
        return self.token in pattern

    def get_matching_permissions(
        self,
        pattern: str,
        permissions: Iterable["PermissionRecord"]
    ) -> List["PermissionRecord"]:
        return [p for p in permissions if self.matches(pattern, p.name)]

    def expand(self, pattern: str, permission_names: Iterable[str]) -> List[str]:
        return [name for name in permission_names if self.matches(pattern, name)]

    def clear_cache(self) -> None:
        self._cache.clear()

    def parse(self, permission: str) -> Dict[str, Optional[str]]:
        """Split a permission into resource and action at the first delimiter."""
        parts = permission.split(self.part_delimiter, 1)
        return {
            "resource": parts[0],
            "action": parts[1] if len(parts) > 1 else None,
        }

    def build(self, resource: str, action: Optional[str] = None) -> str:
        if action is None:
            return resource
        return f"{resource}{self.part_delimiter}{action}"

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _matches_with_subparts(self, pattern: str, permission: str) -> bool:
        parts = pattern.split(self.part_delimiter)
        permission_parts = permission.split(self.part_delimiter)

        if len(parts) != len(permission_parts):
            return False

        for part, permission_part in zip(parts, permission_parts):
            if self.subpart_delimiter in part:
                alternatives = part.split(self.subpart_delimiter)
                if permission_part not in alternatives and self.token not in alternatives:
                    return False
            elif part != self.token and part != permission_part:
                return False

        return True

    def _compile(self, pattern: str) -> Pattern[str]:
        pieces = [re.escape(piece) for piece in pattern.split(self.token)]

        if pattern.endswith(self.token):
            # Trailing wildcard spans the rest of the name
            regex = self._segment.join(pieces[:-1]) + ".+"
        else:
            regex = self._segment.join(pieces)

        return re.compile(regex, re.DOTALL)
