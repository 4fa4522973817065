"""Feature gate deciding whether a granted entity is currently available."""

import logging
from typing import Dict, Iterable, Optional

from ...config.constants import MissingFeatureBehavior
from ...config.settings import AccessSettings, get_settings
from ...core.exceptions import FeatureAccessError
from ...core.value_objects import SubjectReference
from .protocols import FeatureFlagResolver

logger = logging.getLogger(__name__)


class FeatureGate:
    """Checks feature flags for permissions, roles and capabilities that name one.

    An entity without a feature, or any entity while feature integration is
    disabled, is always available. Without a resolver the configured
    ``feature_on_missing_resolver`` behaviour decides.
    """

    def __init__(
        self,
        resolver: Optional[FeatureFlagResolver] = None,
        settings: Optional[AccessSettings] = None,
    ):
        self.resolver = resolver
        self.settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return self.settings.features_enabled

    async def is_available(self, subject: SubjectReference, feature: Optional[str]) -> bool:
        """Whether an entity gated by ``feature`` is available to ``subject``.

        Raises:
            FeatureAccessError: in ``throw`` mode when no resolver is configured
        """
        if not feature or not self.enabled:
            return True

        if self.resolver is None:
            return self._handle_missing_resolver(feature)

        return bool(await self.resolver.is_active(subject.key, feature))

    async def resolve_many(self, subject: SubjectReference, features: Iterable[Optional[str]]) -> Dict[str, bool]:
        """Availability per distinct feature name, each resolved once."""
        results: Dict[str, bool] = {}
        for feature in features:
            if feature and feature not in results:
                results[feature] = await self.is_available(subject, feature)
        return results

    def _handle_missing_resolver(self, feature: str) -> bool:
        behavior = self.settings.feature_on_missing_resolver

        if behavior == MissingFeatureBehavior.THROW:
            raise FeatureAccessError(feature)

        logger.warning(
            f"No feature flag resolver configured, {behavior.value} access to feature '{feature}'"
        )
        return behavior == MissingFeatureBehavior.ALLOW
