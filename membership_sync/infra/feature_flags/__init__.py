from membership_sync.config.feature_flags_config import FeatureFlags
from membership_sync.infra.feature_flags.provider import (
    FeatureFlagProvider,
    InMemoryFeatureFlags,
    SettingsFeatureFlags,
    StaticFeatureFlags,
)

__all__ = [
    "FeatureFlags",
    "FeatureFlagProvider",
    "InMemoryFeatureFlags",
    "SettingsFeatureFlags",
    "StaticFeatureFlags",
]
