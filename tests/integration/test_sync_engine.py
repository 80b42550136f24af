"""End-to-end: events in, read models and workspace state out."""

import pytest

from membership_sync.config.feature_flags_config import FeatureFlags
from membership_sync.core.startup import create_sync_engine
from membership_sync.customer.events import (
    CustomerBecameBoardMember,
    CustomerCreated,
    CustomerRemovedFromBoard,
    MembershipActivated,
    MembershipDeactivated,
)
from membership_sync.infra.event_store.event_store import InMemoryEventStore, JsonlEventStore
from membership_sync.infra.feature_flags.provider import InMemoryFeatureFlags
from membership_sync.infra.jobs.job_queue import AsyncJobQueue, JobStatus
from membership_sync.slack.enums import MemberRole
from membership_sync.subscription.events import SubscriptionCreated, SubscriptionUpdated
from tests.factories import customer_payload, subscription_payload
from tests.fakes.fake_slack_adapter import FakeSlackAdapter

EMAIL = "customer1@example.com"


@pytest.fixture(autouse=True)
def fast_jobs(monkeypatch):
    monkeypatch.setenv("JOB_QUEUE_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("JOB_QUEUE_INITIAL_DELAY_MS", "1")
    monkeypatch.setenv("JOB_QUEUE_JITTER", "false")


@pytest.fixture
def fake_slack() -> FakeSlackAdapter:
    return FakeSlackAdapter()


@pytest.fixture
def flags() -> InMemoryFeatureFlags:
    return InMemoryFeatureFlags()


@pytest.fixture
async def engine(fake_slack, flags):
    engine = await create_sync_engine(workspace=fake_slack, event_store=InMemoryEventStore(), feature_flags=flags)
    yield engine
    await engine.shutdown()


async def publish_and_settle(engine, *events):
    for event in events:
        result = await engine.event_bus.publish(event)
        assert result.ok, result.failures
    await engine.job_queue.join()


async def test_membership_lifecycle(engine, fake_slack):
    assert isinstance(engine.job_queue, AsyncJobQueue)

    await publish_and_settle(
        engine,
        CustomerCreated(customer=customer_payload(1)),
        MembershipActivated(customer_id=1),
    )
    user = fake_slack.user_by_email(EMAIL)
    assert user.role == MemberRole.REGULAR
    assert (await engine.customer_repo.get(1)).is_member

    await publish_and_settle(engine, CustomerBecameBoardMember(customer_id=1))
    assert user.channels == {"board"}
    assert user.usergroups == {"theboard"}

    await publish_and_settle(engine, CustomerRemovedFromBoard(customer_id=1), MembershipDeactivated(customer_id=1))
    assert user.channels == set()
    assert user.usergroups == set()
    assert user.role == MemberRole.PUBLIC_ONLY
    assert not (await engine.customer_repo.get(1)).is_member


async def test_flag_keeps_lapsed_member(engine, fake_slack, flags):
    await publish_and_settle(
        engine,
        CustomerCreated(customer=customer_payload(1)),
        MembershipActivated(customer_id=1),
    )
    flags.turn_on(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)

    await publish_and_settle(engine, MembershipDeactivated(customer_id=1))

    assert fake_slack.user_by_email(EMAIL).role == MemberRole.REGULAR
    assert not fake_slack.was_called("set_member_role")


async def test_need_id_check_invites_restricted_account(engine, fake_slack):
    await publish_and_settle(
        engine,
        CustomerCreated(customer=customer_payload(1)),
        SubscriptionCreated(subscription=subscription_payload(5, 1, "pending")),
        SubscriptionUpdated(subscription=subscription_payload(5, 1, "need-id-check")),
    )

    assert fake_slack.user_by_email(EMAIL).role == MemberRole.ID_CHECK_ONLY
    assert (await engine.subscription_repo.get(5)).status == "need-id-check"


async def test_failed_workspace_call_does_not_undo_event(engine, fake_slack):
    await publish_and_settle(engine, CustomerCreated(customer=customer_payload(1)))
    fake_slack.configure_failure("invite_user", "service unavailable", times=5)

    result = await engine.event_bus.publish(MembershipActivated(customer_id=1))
    await engine.job_queue.join()

    assert result.ok
    assert await engine.event_store.count() == 2
    assert (await engine.customer_repo.get(1)).is_member
    failed = engine.job_queue.failed[-1]
    assert failed.status == JobStatus.FAILED
    assert failed.attempts == 2


async def test_restart_rebuilds_without_side_effects(tmp_path, fake_slack, flags):
    path = tmp_path / "events.jsonl"
    first = await create_sync_engine(workspace=fake_slack, event_store=JsonlEventStore(path), feature_flags=flags)
    await publish_and_settle(
        first,
        CustomerCreated(customer=customer_payload(1)),
        MembershipActivated(customer_id=1),
        CustomerBecameBoardMember(customer_id=1),
    )
    await first.shutdown()
    calls_before = len(fake_slack.get_calls("invite_to_channel"))

    second = await create_sync_engine(workspace=fake_slack, event_store=JsonlEventStore(path), feature_flags=flags)
    try:
        customer = await second.customer_repo.get(1)
        assert customer is not None and customer.is_member
        assert second.rebuilder.history[-1].events_processed == 3
        await second.job_queue.join()
        assert len(fake_slack.get_calls("invite_to_channel")) == calls_before
    finally:
        await second.shutdown()


async def test_dry_run_records_commands():
    engine = await create_sync_engine(event_store=InMemoryEventStore(), feature_flags=InMemoryFeatureFlags())

    await engine.event_bus.publish(CustomerCreated(customer=customer_payload(1)))
    await engine.event_bus.publish(MembershipActivated(customer_id=1))

    assert [c.command_name for c in engine.job_queue.commands] == ["PromoteToRegularMemberCommand"]
    await engine.shutdown()
