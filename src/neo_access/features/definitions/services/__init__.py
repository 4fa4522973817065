"""Definition sync services."""

from .synchronizer import DefinitionSynchronizer

__all__ = ["DefinitionSynchronizer"]
