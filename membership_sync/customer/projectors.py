# =============================================================================
# File: membership_sync/customer/projectors.py
# Description: Customer projector - folds customer and membership events
#              into the customer read model
# =============================================================================

import logging

from membership_sync.common.exceptions.exceptions import ProjectionInconsistency
from membership_sync.customer.events import (
    CustomerCreated,
    CustomerDeleted,
    CustomerImported,
    CustomerPayload,
    CustomerUpdated,
    MembershipActivated,
    MembershipDeactivated,
)
from membership_sync.customer.read_models import CustomerReadModel
from membership_sync.infra.cqrs.handler_decorators import Projector, projects
from membership_sync.infra.event_store.event_envelope import EventEnvelope
from membership_sync.infra.read_repos.customer_read_repo import CustomerReadRepo

log = logging.getLogger("membership_sync.customer.projectors")


class CustomerProjector(Projector):
    """Maintains CustomerReadModel rows keyed by the platform customer id."""

    def __init__(self, customer_repo: CustomerReadRepo):
        super().__init__()
        self.customer_repo = customer_repo

    async def on_start_replay(self) -> None:
        removed = await self.customer_repo.truncate()
        log.info(f"Customer read model reset for replay ({removed} rows dropped)")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @projects(CustomerImported, CustomerCreated)
    async def on_customer_added(self, event, envelope: EventEnvelope) -> None:
        """Find-or-create: an existing row is returned unchanged."""
        existing = await self.customer_repo.get(event.customer.id)
        if existing is not None:
            log.debug(f"Customer {event.customer.id} already projected, skipping {event.event_type}")
            return

        await self.customer_repo.upsert(CustomerReadModel.from_payload(event.customer))
        log.info(f"Projected {event.event_type} for customer {event.customer.id}")

    @projects(CustomerUpdated)
    async def on_customer_updated(self, event: CustomerUpdated, envelope: EventEnvelope) -> None:
        customer = await self._require(event.customer.id, envelope)
        await self.customer_repo.upsert(customer.model_copy(update=_profile_fields(event.customer)))

    @projects(CustomerDeleted)
    async def on_customer_deleted(self, event: CustomerDeleted, envelope: EventEnvelope) -> None:
        removed = await self.customer_repo.delete(event.customer_id)
        if removed is None:
            log.debug(f"Customer {event.customer_id} already absent")

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    @projects(MembershipActivated)
    async def on_membership_activated(self, event: MembershipActivated, envelope: EventEnvelope) -> None:
        customer = await self._require(event.customer_id, envelope)
        await self.customer_repo.upsert(customer.model_copy(update={"is_member": True}))

    @projects(MembershipDeactivated)
    async def on_membership_deactivated(self, event: MembershipDeactivated, envelope: EventEnvelope) -> None:
        customer = await self._require(event.customer_id, envelope)
        await self.customer_repo.upsert(customer.model_copy(update={"is_member": False}))

    async def _require(self, customer_id: int, envelope: EventEnvelope) -> CustomerReadModel:
        customer = await self.customer_repo.get(customer_id)
        if customer is None:
            raise ProjectionInconsistency(
                f"{envelope.event_type} #{envelope.sequence_number} references unknown customer {customer_id}",
                entity="customer",
                external_id=customer_id,
            )
        return customer


def _profile_fields(customer: CustomerPayload) -> dict:
    return {
        "email": customer.email,
        "username": customer.username,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
    }
