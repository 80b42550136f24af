"""Tests for environment-backed configuration."""

import pytest

from membership_sync.config.event_bus_config import EventBusConfig, get_event_bus_config
from membership_sync.config.event_store_config import EventStoreConfig, get_event_store_config
from membership_sync.config.feature_flags_config import FeatureFlagConfig
from membership_sync.config.job_queue_config import JobQueueConfig, get_job_queue_config
from membership_sync.config.projection_rebuilder_config import (
    ProjectionRebuilderConfig,
    is_projection_rebuilder_enabled,
)

CONFIGS = [
    (EventStoreConfig, "EVENT_STORE_"),
    (EventBusConfig, "EVENT_BUS_"),
    (JobQueueConfig, "JOB_QUEUE_"),
    (ProjectionRebuilderConfig, "PROJECTION_REBUILDER_"),
    (FeatureFlagConfig, "FEATURE_FLAGS_"),
]


@pytest.mark.parametrize("config_class,prefix", CONFIGS)
def test_config_keeps_base_settings_and_own_prefix(config_class, prefix):
    config = config_class()

    assert config_class.model_config["env_prefix"] == prefix
    assert config_class.model_config["env_file"] == ".env"
    assert config_class.model_config["extra"] == "ignore"
    assert isinstance(config.to_dict(), dict)


def test_defaults():
    store = get_event_store_config()
    jobs = get_job_queue_config()

    assert store.backend == "memory"
    assert store.fsync is True
    assert jobs.max_attempts == 5
    assert get_event_bus_config().replay_batch_size == 500
    assert is_projection_rebuilder_enabled()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("EVENT_STORE_BACKEND", "jsonl")
    monkeypatch.setenv("EVENT_STORE_JSONL_PATH", "/tmp/membership-events.jsonl")
    monkeypatch.setenv("JOB_QUEUE_CONCURRENCY", "8")
    monkeypatch.setenv("event_bus_handler_timeout_seconds", "2.5")

    assert get_event_store_config().jsonl_path == "/tmp/membership-events.jsonl"
    assert get_job_queue_config().concurrency == 8
    assert get_event_bus_config().handler_timeout_seconds == 2.5


def test_singletons_are_cached():
    assert get_job_queue_config() is get_job_queue_config()


def test_repr_and_dict():
    config = EventStoreConfig(backend="jsonl", jsonl_path="events.jsonl")

    assert "backend='jsonl'" in repr(config)
    assert config.to_dict()["jsonl_path"] == "events.jsonl"
