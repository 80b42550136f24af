# membership_sync/config/feature_flags_config.py
# =============================================================================
# File: membership_sync/config/feature_flags_config.py
# Description: Feature flag names and the environment-backed flag settings
# =============================================================================

from functools import lru_cache
from typing import FrozenSet

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from membership_sync.common.base.base_config import BaseConfig


class FeatureFlags:
    """Known feature flag names"""
    KEEP_MEMBERS_IN_SLACK_AND_EMAIL = "keep_members_in_slack_and_email"
    NEED_ID_CHECK_GETS_ADDED_TO_SLACK_AND_EMAIL = "need_id_check_gets_added_to_slack_and_email"


class FeatureFlagConfig(BaseConfig):
    """
    Feature flags enabled through the environment.

    Example:
        FEATURE_FLAGS_ENABLED=keep_members_in_slack_and_email,need_id_check_gets_added_to_slack_and_email
    """

    model_config = SettingsConfigDict(env_prefix='FEATURE_FLAGS_')

    enabled: str = Field(default="", description="Comma-separated list of enabled flags")

    def enabled_flags(self) -> FrozenSet[str]:
        return frozenset(
            name.strip().lower()
            for name in self.enabled.split(",")
            if name.strip()
        )


@lru_cache(maxsize=1)
def get_feature_flag_config() -> FeatureFlagConfig:
    """Get feature flag configuration singleton (cached)."""
    return FeatureFlagConfig()


def reset_feature_flag_config() -> None:
    """Reset config singleton (for testing)."""
    get_feature_flag_config.cache_clear()
