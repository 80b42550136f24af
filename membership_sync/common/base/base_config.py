# membership_sync/common/base/base_config.py
# =============================================================================
# BaseConfig - Foundation for all Membership Sync configuration classes
#
# - SettingsConfigDict (not deprecated class Config)
# - Automatic .env file loading
# - Case-insensitive environment variables
# - @lru_cache singleton pattern for factory functions
#
# Usage:
#     class MyConfig(BaseConfig):
#         model_config = SettingsConfigDict(env_prefix="MY_")
#         timeout_ms: int = 5000
#
#     @lru_cache(maxsize=1)
#     def get_my_config() -> MyConfig:
#         return MyConfig()
#
# Subclasses only declare what differs; pydantic merges the base
# model_config into theirs.
# =============================================================================

from typing import Any, Dict

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class for all Membership Sync configs.

    Environment Variable Naming:
    - Use component prefixes (EVENT_STORE_, JOB_QUEUE_, FEATURE_FLAGS_, ...)

    Singleton Pattern:
    - Each config has a factory function with @lru_cache(maxsize=1)
      and a reset_* companion for tests
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary of the effective settings, for startup logs."""
        return self.model_dump()
