"""Dot-delimited wildcard matcher.

``users.*`` matches ``users.view``; ``*.view`` matches ``users.view`` but not
``users.admin.view``. A wildcard always matches exactly one segment, so a
bare ``*`` only matches single-segment names.
"""

import re
from typing import Iterable, List, Pattern, TYPE_CHECKING

from ....config.constants import WildcardDefaults
from ..entities.pattern_cache import BoundedPatternCache

if TYPE_CHECKING:
    from ...permissions.entities.permission import PermissionRecord


class DotWildcardMatcher:
    """Wildcard handler for ``resource.action`` style permission names."""

    def __init__(
        self,
        token: str = WildcardDefaults.TOKEN,
        delimiter: str = WildcardDefaults.DOT_DELIMITER,
        cache_size: int = WildcardDefaults.PATTERN_CACHE_SIZE,
    ):
        self.token = token
        self.delimiter = delimiter
        self._segment = f"[^{re.escape(delimiter)}]+"
        self._cache = BoundedPatternCache(cache_size)

    def matches(self, pattern: str, permission: str) -> bool:
        if pattern == permission:
            return True

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
        """Expand a pattern; a plain name expands to itself only if known."""
        names = list(permission_names)
        if not self.contains_wildcard(pattern):
            return [pattern] if pattern in names else []
        return [name for name in names if self.matches(pattern, name)]

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _compile(self, pattern: str) -> Pattern[str]:
        pieces = [re.escape(piece) for piece in pattern.split(self.token)]
        return re.compile(self._segment.join(pieces), re.DOTALL)
