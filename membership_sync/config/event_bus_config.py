# membership_sync/config/event_bus_config.py
# =============================================================================
# File: membership_sync/config/event_bus_config.py
# Description: Live dispatch / replay configuration
# =============================================================================

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from membership_sync.common.base.base_config import BaseConfig


class EventBusConfig(BaseConfig):
    """Configuration for the in-process event dispatcher"""

    model_config = SettingsConfigDict(env_prefix='EVENT_BUS_')

    handler_timeout_seconds: float = Field(default=5.0, description="Max time a single handler may take")
    slow_dispatch_warning_seconds: float = Field(default=0.5, description="Warn when one dispatch exceeds this")
    replay_batch_size: int = Field(default=500, description="Events read per catch-up pass during replay")


@lru_cache(maxsize=1)
def get_event_bus_config() -> EventBusConfig:
    """Get event bus configuration singleton (cached)."""
    return EventBusConfig()


def reset_event_bus_config() -> None:
    """Reset config singleton (for testing)."""
    get_event_bus_config.cache_clear()
