"""Wildcard entities and protocols."""

from .pattern_cache import BoundedPatternCache
from .protocols import WildcardHandler

__all__ = [
    "BoundedPatternCache",
    "WildcardHandler",
]
