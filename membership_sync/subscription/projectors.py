# =============================================================================
# File: membership_sync/subscription/projectors.py
# Description: Subscription projector - folds subscription events into the
#              subscription read model; cascades customer deletion
# =============================================================================

import logging

from membership_sync.common.exceptions.exceptions import ProjectionInconsistency
from membership_sync.customer.events import CustomerDeleted
from membership_sync.infra.cqrs.handler_decorators import Projector, projects
from membership_sync.infra.event_store.event_envelope import EventEnvelope
from membership_sync.infra.read_repos.subscription_read_repo import SubscriptionReadRepo
from membership_sync.subscription.enums import SubscriptionStatus
from membership_sync.subscription.events import (
    SubscriptionCreated,
    SubscriptionDeleted,
    SubscriptionImported,
    SubscriptionPayload,
    SubscriptionUpdated,
)
from membership_sync.subscription.read_models import SubscriptionReadModel

log = logging.getLogger("membership_sync.subscription.projectors")


class SubscriptionProjector(Projector):
    """Maintains SubscriptionReadModel rows keyed by the platform subscription id."""

    def __init__(self, subscription_repo: SubscriptionReadRepo):
        super().__init__()
        self.subscription_repo = subscription_repo

    async def on_start_replay(self) -> None:
        removed = await self.subscription_repo.truncate()
        log.info(f"Subscription read model reset for replay ({removed} rows dropped)")

    @projects(SubscriptionImported, SubscriptionCreated)
    async def on_subscription_added(self, event, envelope: EventEnvelope) -> None:
        _warn_on_unknown_status(event.subscription, envelope)
        await self._add_or_get(event.subscription)

    @projects(SubscriptionUpdated)
    async def on_subscription_updated(self, event: SubscriptionUpdated, envelope: EventEnvelope) -> None:
        subscription = await self.subscription_repo.get(event.subscription.id)
        if subscription is None:
            raise ProjectionInconsistency(
                f"{envelope.event_type} #{envelope.sequence_number} references "
                f"unknown subscription {event.subscription.id}",
                entity="subscription",
                external_id=event.subscription.id,
            )

        _warn_on_unknown_status(event.subscription, envelope)
        await self.subscription_repo.upsert(subscription.model_copy(update={"status": event.subscription.status}))

    @projects(SubscriptionDeleted)
    async def on_subscription_deleted(self, event: SubscriptionDeleted, envelope: EventEnvelope) -> None:
        await self.subscription_repo.delete(event.subscription.id)

    @projects(CustomerDeleted)
    async def on_customer_deleted(self, event: CustomerDeleted, envelope: EventEnvelope) -> None:
        removed = await self.subscription_repo.delete_by_customer(event.customer_id)
        if removed:
            log.info(
                f"Removed {len(removed)} subscriptions of deleted customer {event.customer_id}: "
                f"{[s.external_id for s in removed]}"
            )

    async def _add_or_get(self, payload: SubscriptionPayload) -> SubscriptionReadModel:
        existing = await self.subscription_repo.get(payload.id)
        if existing is not None:
            return existing
        return await self.subscription_repo.upsert(SubscriptionReadModel.from_payload(payload))


def _warn_on_unknown_status(subscription: SubscriptionPayload, envelope: EventEnvelope) -> None:
    # Unknown statuses are stored as-is
    if not SubscriptionStatus.is_known(subscription.status):
        log.warning(
            f"{envelope.event_type} #{envelope.sequence_number}: subscription {subscription.id} "
            f"has unknown status '{subscription.status}'"
        )
