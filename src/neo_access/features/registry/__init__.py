"""Definition registry and cache-backed registrar."""

from .definition_registry import DefinitionRegistry
from .registrar import AccessRegistrar

__all__ = [
    "DefinitionRegistry",
    "AccessRegistrar",
]
