"""Shared fixtures for the membership-sync test suite."""

from __future__ import annotations

import pytest

from membership_sync.config.event_bus_config import EventBusConfig, reset_event_bus_config
from membership_sync.config.event_store_config import reset_event_store_config
from membership_sync.config.feature_flags_config import reset_feature_flag_config
from membership_sync.config.job_queue_config import reset_job_queue_config
from membership_sync.config.projection_rebuilder_config import reset_projection_rebuilder_config
from membership_sync.customer.projectors import CustomerProjector
from membership_sync.infra.event_bus.event_bus import EventBus
from membership_sync.infra.event_bus.event_registry import load_domain_events
from membership_sync.infra.event_store.event_store import InMemoryEventStore
from membership_sync.infra.feature_flags.provider import InMemoryFeatureFlags
from membership_sync.infra.jobs.job_queue import RecordingJobQueue
from membership_sync.infra.read_repos.customer_read_repo import InMemoryCustomerReadRepo
from membership_sync.infra.read_repos.subscription_read_repo import InMemorySubscriptionReadRepo
from membership_sync.slack.reactors import SlackReactor
from membership_sync.subscription.projectors import SubscriptionProjector

load_domain_events()


@pytest.fixture(autouse=True)
def _reset_config_singletons():
    yield
    reset_event_store_config()
    reset_event_bus_config()
    reset_job_queue_config()
    reset_feature_flag_config()
    reset_projection_rebuilder_config()


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def bus_config() -> EventBusConfig:
    return EventBusConfig(handler_timeout_seconds=1.0, slow_dispatch_warning_seconds=5.0, replay_batch_size=3)


@pytest.fixture
def customer_repo() -> InMemoryCustomerReadRepo:
    return InMemoryCustomerReadRepo()


@pytest.fixture
def subscription_repo() -> InMemorySubscriptionReadRepo:
    return InMemorySubscriptionReadRepo()


@pytest.fixture
def job_queue() -> RecordingJobQueue:
    return RecordingJobQueue()


@pytest.fixture
def feature_flags() -> InMemoryFeatureFlags:
    return InMemoryFeatureFlags()


@pytest.fixture
def customer_projector(customer_repo) -> CustomerProjector:
    return CustomerProjector(customer_repo)


@pytest.fixture
def subscription_projector(subscription_repo) -> SubscriptionProjector:
    return SubscriptionProjector(subscription_repo)


@pytest.fixture
def slack_reactor(job_queue, feature_flags) -> SlackReactor:
    return SlackReactor(job_queue, feature_flags)


@pytest.fixture
async def event_bus(event_store, bus_config, customer_projector, subscription_projector, slack_reactor) -> EventBus:
    """Initialized bus with both projectors and the Slack reactor registered."""
    bus = EventBus(event_store, bus_config)
    bus.register_projector(customer_projector)
    bus.register_projector(subscription_projector)
    bus.register_reactor(slack_reactor)
    await bus.initialize()
    return bus
