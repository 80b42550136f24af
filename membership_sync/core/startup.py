# =============================================================================
# File: membership_sync/core/startup.py
# Description: Wires store, bus, projectors, reactors and the job layer
#              into a running sync engine
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Optional

from membership_sync.customer.projectors import CustomerProjector
from membership_sync.infra.cqrs.command_executor import CommandExecutor
from membership_sync.infra.event_bus.event_bus import EventBus
from membership_sync.infra.event_store.event_store import EventStore, create_event_store
from membership_sync.infra.event_store.projection_rebuilder import ProjectionRebuilder
from membership_sync.infra.feature_flags.provider import FeatureFlagProvider, SettingsFeatureFlags
from membership_sync.infra.jobs.job_queue import AsyncJobQueue, JobQueue, PausableJobQueue, RecordingJobQueue
from membership_sync.infra.read_repos.customer_read_repo import CustomerReadRepo, InMemoryCustomerReadRepo
from membership_sync.infra.read_repos.subscription_read_repo import (
    InMemorySubscriptionReadRepo,
    SubscriptionReadRepo,
)
from membership_sync.slack.command_handlers.membership_handlers import register_slack_handlers
from membership_sync.slack.ports.slack_workspace_port import SlackWorkspacePort
from membership_sync.slack.reactors import SlackReactor
from membership_sync.subscription.projectors import SubscriptionProjector

logger = logging.getLogger("membership_sync.startup")


@dataclass
class SyncEngine:
    """Running components of the synchronization engine"""
    event_store: EventStore
    event_bus: EventBus
    customer_repo: CustomerReadRepo
    subscription_repo: SubscriptionReadRepo
    feature_flags: FeatureFlagProvider
    job_queue: JobQueue
    rebuilder: ProjectionRebuilder
    executor: Optional[CommandExecutor] = None

    async def shutdown(self) -> None:
        if isinstance(self.job_queue, AsyncJobQueue):
            await self.job_queue.stop()
        logger.info("Sync engine stopped")


async def create_sync_engine(
        *,
        workspace: Optional[SlackWorkspacePort] = None,
        event_store: Optional[EventStore] = None,
        job_queue: Optional[JobQueue] = None,
        feature_flags: Optional[FeatureFlagProvider] = None,
        rebuild_on_start: bool = True,
) -> SyncEngine:
    """
    Build and start the engine.

    Without a workspace adapter or an explicit job queue, commands are only
    recorded (dry run). Existing history is replayed into the read models
    on start unless rebuild_on_start is False.
    """
    event_store = event_store or create_event_store()
    event_bus = EventBus(event_store)

    customer_repo = InMemoryCustomerReadRepo()
    subscription_repo = InMemorySubscriptionReadRepo()
    event_bus.register_projector(CustomerProjector(customer_repo))
    event_bus.register_projector(SubscriptionProjector(subscription_repo))

    executor = None
    if job_queue is None:
        if workspace is None:
            logger.warning("No workspace adapter configured - workspace commands will only be recorded")
            job_queue = RecordingJobQueue()
        else:
            executor = register_slack_handlers(CommandExecutor(), workspace, customer_repo)
            job_queue = AsyncJobQueue(executor)
            await job_queue.start()

    feature_flags = feature_flags or SettingsFeatureFlags()
    event_bus.register_reactor(SlackReactor(job_queue, feature_flags))

    await event_bus.initialize()

    # Command handlers read the customer read model that a rebuild resets
    paused_queues = [job_queue] if isinstance(job_queue, PausableJobQueue) else []
    rebuilder = ProjectionRebuilder(event_bus, paused_queues=paused_queues)
    if rebuild_on_start and await event_store.count():
        await rebuilder.rebuild()

    logger.info(f"Sync engine started: {event_bus.get_stats()}")

    return SyncEngine(
        event_store=event_store,
        event_bus=event_bus,
        customer_repo=customer_repo,
        subscription_repo=subscription_repo,
        feature_flags=feature_flags,
        job_queue=job_queue,
        rebuilder=rebuilder,
        executor=executor,
    )
