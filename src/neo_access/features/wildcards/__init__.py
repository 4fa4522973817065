"""Wildcard permission matching feature.

Two independent dialects: colon-delimited names where a trailing wildcard
crosses segments and comma subparts enumerate alternatives, and
dot-delimited names where a wildcard always matches a single segment.
"""

from .entities import BoundedPatternCache, WildcardHandler
from .matchers import ColonWildcardMatcher, DotWildcardMatcher
from .factory import create_wildcard_handler

__all__ = [
    "BoundedPatternCache",
    "WildcardHandler",
    "ColonWildcardMatcher",
    "DotWildcardMatcher",
    "create_wildcard_handler",
]
