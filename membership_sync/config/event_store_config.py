# membership_sync/config/event_store_config.py
# =============================================================================
# File: membership_sync/config/event_store_config.py
# Description: Event store configuration (backend selection, durability)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from membership_sync.common.base.base_config import BaseConfig


class EventStoreConfig(BaseConfig):
    """
    Event store configuration.

    Backends:
    - memory: process-local log, lost on exit (tests, dry runs)
    - jsonl:  append-only JSON-lines file, fsync'ed on every append
    """

    model_config = SettingsConfigDict(env_prefix='EVENT_STORE_')

    backend: Literal["memory", "jsonl"] = Field(default="memory", description="Storage backend")
    jsonl_path: str = Field(default="var/events.jsonl", description="Event log file for the jsonl backend")
    fsync: bool = Field(default=True, description="fsync the log file before append returns")


@lru_cache(maxsize=1)
def get_event_store_config() -> EventStoreConfig:
    """Get event store configuration singleton (cached)."""
    return EventStoreConfig()


def reset_event_store_config() -> None:
    """Reset config singleton (for testing)."""
    get_event_store_config.cache_clear()
