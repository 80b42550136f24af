# membership_sync/config/projection_rebuilder_config.py
# =============================================================================
# File: membership_sync/config/projection_rebuilder_config.py
# Purpose: Configuration for the Projection Rebuilder
# =============================================================================

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from membership_sync.common.base.base_config import BaseConfig


class ProjectionRebuilderConfig(BaseConfig):
    """Configuration for Projection Rebuilder"""

    model_config = SettingsConfigDict(env_prefix='PROJECTION_REBUILDER_')

    enabled: bool = Field(default=True, description="Enable projection rebuilder")
    progress_log_interval: int = Field(default=1000, description="Log progress every N events")
    keep_history: int = Field(default=10, description="Completed rebuilds kept in memory")


@lru_cache(maxsize=1)
def get_projection_rebuilder_config() -> ProjectionRebuilderConfig:
    """Get projection rebuilder configuration singleton (cached)."""
    return ProjectionRebuilderConfig()


def reset_projection_rebuilder_config() -> None:
    """Reset config singleton (for testing)."""
    get_projection_rebuilder_config.cache_clear()


def is_projection_rebuilder_enabled() -> bool:
    """Check if projection rebuilder is enabled"""
    return get_projection_rebuilder_config().enabled
