"""Tests for the feature gate."""

from unittest.mock import AsyncMock

import pytest

from neo_access.config import MissingFeatureBehavior
from neo_access.core.exceptions import FeatureAccessError
from neo_access.features.flags import FeatureFlagResolver, FeatureGate


@pytest.fixture
def resolver():
    resolver = AsyncMock(spec=FeatureFlagResolver)
    resolver.is_active.return_value = True
    return resolver


class TestFeatureGate:
    """Test availability decisions."""

    @pytest.mark.asyncio
    async def test_no_feature_is_always_available(self, make_settings, user):
        """Test entities without a feature skip the gate."""
        gate = FeatureGate(settings=make_settings(features_enabled=True))

        assert await gate.is_available(user, None) is True

    @pytest.mark.asyncio
    async def test_disabled_integration(self, make_settings, user, resolver):
        """Test every entity is available while integration is disabled."""
        gate = FeatureGate(resolver, make_settings())

        assert await gate.is_available(user, "beta") is True
        resolver.is_active.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resolver_decides(self, make_settings, user, resolver):
        """Test the resolver is asked with the subject key."""
        resolver.is_active.return_value = False
        gate = FeatureGate(resolver, make_settings(features_enabled=True))

        assert await gate.is_available(user, "beta") is False
        resolver.is_active.assert_awaited_once_with("user:1", "beta")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("behavior,expected", [
        (MissingFeatureBehavior.ALLOW, True),
        (MissingFeatureBehavior.DENY, False),
    ])
    async def test_missing_resolver(self, make_settings, user, behavior, expected, caplog):
        """Test allow and deny fallbacks log a warning."""
        gate = FeatureGate(settings=make_settings(features_enabled=True, feature_on_missing_resolver=behavior))

        assert await gate.is_available(user, "beta") is expected
        assert "No feature flag resolver configured" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_resolver_throw(self, make_settings, user):
        """Test strict mode raises."""
        gate = FeatureGate(settings=make_settings(
            features_enabled=True, feature_on_missing_resolver=MissingFeatureBehavior.THROW
        ))

        with pytest.raises(FeatureAccessError):
            await gate.is_available(user, "beta")

    @pytest.mark.asyncio
    async def test_resolve_many(self, make_settings, user, resolver):
        """Test each distinct feature is resolved once."""
        gate = FeatureGate(resolver, make_settings(features_enabled=True))

        result = await gate.resolve_many(user, ["beta", None, "beta", "gamma"])

        assert result == {"beta": True, "gamma": True}
        assert resolver.is_active.await_count == 2
