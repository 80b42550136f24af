# =============================================================================
# File: membership_sync/slack/reactors.py
# Description: Slack reactor - decides which workspace commands a live event
#              calls for. Enqueues only; never touches read models or the
#              network, and is never run during replay.
# =============================================================================

import logging
from typing import List

from membership_sync.config.feature_flags_config import FeatureFlags
from membership_sync.customer.events import (
    CustomerBecameBoardMember,
    CustomerRemovedFromBoard,
    MembershipActivated,
    MembershipDeactivated,
)
from membership_sync.infra.cqrs.handler_decorators import Reactor, reacts_to
from membership_sync.infra.event_store.event_envelope import EventEnvelope
from membership_sync.infra.feature_flags.provider import FeatureFlagProvider
from membership_sync.infra.jobs.job_queue import JobHandle, JobQueue
from membership_sync.slack.commands import (
    AddToChannelCommand,
    AddToUserGroupCommand,
    DemoteToPublicOnlyMemberCommand,
    InviteAsIdCheckOnlyMemberCommand,
    PromoteToRegularMemberCommand,
    RemoveFromChannelCommand,
    RemoveFromUserGroupCommand,
    SlackCommand,
)
from membership_sync.slack.enums import Channels, UserGroups
from membership_sync.subscription.enums import SubscriptionStatus
from membership_sync.subscription.events import SubscriptionUpdated

log = logging.getLogger("membership_sync.slack.reactor")


class SlackReactor(Reactor):
    """
    Maps membership events to workspace commands.

    Flag state is read when the event is handled, so flipping a flag only
    affects events published afterwards.
    """

    def __init__(self, job_queue: JobQueue, feature_flags: FeatureFlagProvider):
        super().__init__()
        self.job_queue = job_queue
        self.feature_flags = feature_flags

    # -------------------------------------------------------------------------
    # Board
    # -------------------------------------------------------------------------

    @reacts_to(CustomerBecameBoardMember)
    async def on_became_board_member(self, event: CustomerBecameBoardMember, envelope: EventEnvelope) -> None:
        await self._enqueue(
            envelope,
            AddToChannelCommand(customer_id=event.customer_id, channel=Channels.BOARD),
            AddToUserGroupCommand(customer_id=event.customer_id, usergroup_handle=UserGroups.THE_BOARD),
        )

    @reacts_to(CustomerRemovedFromBoard)
    async def on_removed_from_board(self, event: CustomerRemovedFromBoard, envelope: EventEnvelope) -> None:
        await self._enqueue(
            envelope,
            RemoveFromChannelCommand(customer_id=event.customer_id, channel=Channels.BOARD),
            RemoveFromUserGroupCommand(customer_id=event.customer_id, usergroup_handle=UserGroups.THE_BOARD),
        )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    @reacts_to(MembershipActivated)
    async def on_membership_activated(self, event: MembershipActivated, envelope: EventEnvelope) -> None:
        await self._enqueue(envelope, PromoteToRegularMemberCommand(customer_id=event.customer_id))

    @reacts_to(MembershipDeactivated)
    async def on_membership_deactivated(self, event: MembershipDeactivated, envelope: EventEnvelope) -> None:
        if self.feature_flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL):
            log.info(f"Keeping customer {event.customer_id} in workspace ({FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL})")
            return

        await self._enqueue(envelope, DemoteToPublicOnlyMemberCommand(customer_id=event.customer_id))

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    @reacts_to(SubscriptionUpdated)
    async def on_subscription_updated(self, event: SubscriptionUpdated, envelope: EventEnvelope) -> None:
        subscription = event.subscription
        if subscription.status != SubscriptionStatus.NEED_ID_CHECK.value:
            return

        if self.feature_flags.is_enabled(FeatureFlags.NEED_ID_CHECK_GETS_ADDED_TO_SLACK_AND_EMAIL):
            command = PromoteToRegularMemberCommand(customer_id=subscription.customer_id)
        else:
            command = InviteAsIdCheckOnlyMemberCommand(customer_id=subscription.customer_id)

        await self._enqueue(envelope, command)

    async def _enqueue(self, envelope: EventEnvelope, *commands: SlackCommand) -> List[JobHandle]:
        handles = []
        for command in commands:
            command = command.model_copy(update={"causation_event_id": envelope.event_id})
            handles.append(await self.job_queue.enqueue(command))
            log.info(
                f"{envelope.event_type} #{envelope.sequence_number} -> {command.command_name} "
                f"for customer {command.customer_id}"
            )
        return handles
