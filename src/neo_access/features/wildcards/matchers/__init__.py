"""Wildcard dialect implementations."""

from .colon_matcher import ColonWildcardMatcher
from .dot_matcher import DotWildcardMatcher

__all__ = [
    "ColonWildcardMatcher",
    "DotWildcardMatcher",
]
