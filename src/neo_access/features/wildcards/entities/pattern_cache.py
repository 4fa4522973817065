"""Bounded cache of compiled wildcard patterns."""

import threading
from typing import Callable, Dict, Pattern

from ....config.constants import WildcardDefaults


class BoundedPatternCache:
    """Compiled regex cache keyed by raw pattern text.

    Entries are kept in insertion order. When the cache is full the oldest
    half is dropped in one step before the new pattern is stored.
    Eviction never changes match results, only whether a pattern is
    recompiled.
    """

    def __init__(self, max_size: int = WildcardDefaults.PATTERN_CACHE_SIZE):
        if max_size < 2:
            raise ValueError(f"Pattern cache size must be at least 2, got: {max_size}")
        self.max_size = max_size
        self._patterns: Dict[str, Pattern[str]] = {}
        self._lock = threading.Lock()

    def get_or_compile(self, pattern: str, compiler: Callable[[str], Pattern[str]]) -> Pattern[str]:
        """Return the cached regex for ``pattern``, compiling it on a miss."""
        compiled = self._patterns.get(pattern)
        if compiled is not None:
            return compiled

        with self._lock:
            compiled = self._patterns.get(pattern)
            if compiled is not None:
                return compiled

            compiled = compiler(pattern)

            if len(self._patterns) >= self.max_size:
                self._evict_oldest_half()

            self._patterns[pattern] = compiled
            return compiled

    def _evict_oldest_half(self) -> None:
        for key in list(self._patterns)[: self.max_size // 2]:
            del self._patterns[key]

    def clear(self) -> None:
        with self._lock:
            self._patterns.clear()

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._patterns
