# =============================================================================
# File: membership_sync/subscription/events.py
# Description: Domain events for subscription lifecycle
# =============================================================================

from __future__ import annotations

from typing import Literal

from membership_sync.common.base.base_model import BaseEvent, BasePayload
from membership_sync.infra.event_bus.event_decorators import domain_event


class SubscriptionPayload(BasePayload):
    """
    Subscription as sent by the e-commerce platform webhook.

    `status` stays a plain string so statuses added by the platform later
    are carried through unchanged; compare against SubscriptionStatus.
    """
    id: int
    customer_id: int
    status: str


@domain_event(category="subscription")
class SubscriptionImported(BaseEvent):
    event_type: Literal["SubscriptionImported"] = "SubscriptionImported"
    subscription: SubscriptionPayload


@domain_event(category="subscription")
class SubscriptionCreated(BaseEvent):
    event_type: Literal["SubscriptionCreated"] = "SubscriptionCreated"
    subscription: SubscriptionPayload


@domain_event(category="subscription")
class SubscriptionUpdated(BaseEvent):
    event_type: Literal["SubscriptionUpdated"] = "SubscriptionUpdated"
    subscription: SubscriptionPayload


@domain_event(category="subscription")
class SubscriptionDeleted(BaseEvent):
    event_type: Literal["SubscriptionDeleted"] = "SubscriptionDeleted"
    subscription: SubscriptionPayload
