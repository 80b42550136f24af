# =============================================================================
# File: membership_sync/subscription/read_models.py
# Description: Pydantic read model for subscription projections
# =============================================================================

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from membership_sync.subscription.events import SubscriptionPayload


class SubscriptionReadModel(BaseModel):
    """
    Current state of one platform subscription.

    customer_external_id is a lookup reference only; the customer row does
    not own the subscription's lifetime beyond the delete cascade.
    """
    external_id: int
    customer_external_id: int
    status: str

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @classmethod
    def from_payload(cls, subscription: SubscriptionPayload) -> SubscriptionReadModel:
        return cls(
            external_id=subscription.id,
            customer_external_id=subscription.customer_id,
            status=subscription.status,
        )
