"""Feature-flag gating of permission, role and capability availability."""

from .protocols import FeatureFlagResolver
from .feature_gate import FeatureGate

__all__ = [
    "FeatureFlagResolver",
    "FeatureGate",
]
