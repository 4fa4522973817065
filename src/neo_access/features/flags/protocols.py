"""Protocol for the external feature-flag service."""

from abc import abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class FeatureFlagResolver(Protocol):
    """Boolean feature resolution keyed by subject (or scope) and feature name."""

    @abstractmethod
    async def is_active(self, scope_key: str, feature: str) -> bool:
        """Check whether ``feature`` is active for ``scope_key``."""
        ...
