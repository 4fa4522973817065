"""Value objects for neo-access."""

from .references import SubjectReference, ContextReference

__all__ = [
    "SubjectReference",
    "ContextReference",
]
