# =============================================================================
# File: membership_sync/customer/events.py
# Description: Domain events for customers, membership and the board
# =============================================================================

from __future__ import annotations

from typing import Literal, Optional

from membership_sync.common.base.base_model import BaseEvent, BasePayload
from membership_sync.infra.event_bus.event_decorators import domain_event


# =============================================================================
# SECTION: Platform payloads
# =============================================================================

class CustomerPayload(BasePayload):
    """Customer as sent by the e-commerce platform webhook."""
    id: int
    email: str
    username: str = ""
    first_name: str = ""
    last_name: str = ""


# =============================================================================
# SECTION: Customer lifecycle events
# =============================================================================

@domain_event(category="customer")
class CustomerImported(BaseEvent):
    event_type: Literal["CustomerImported"] = "CustomerImported"
    customer: CustomerPayload


@domain_event(category="customer")
class CustomerCreated(BaseEvent):
    event_type: Literal["CustomerCreated"] = "CustomerCreated"
    customer: CustomerPayload


@domain_event(category="customer")
class CustomerUpdated(BaseEvent):
    event_type: Literal["CustomerUpdated"] = "CustomerUpdated"
    customer: CustomerPayload


@domain_event(category="customer")
class CustomerDeleted(BaseEvent):
    event_type: Literal["CustomerDeleted"] = "CustomerDeleted"
    customer_id: int


# =============================================================================
# SECTION: Membership events
# =============================================================================

@domain_event(category="membership")
class MembershipActivated(BaseEvent):
    event_type: Literal["MembershipActivated"] = "MembershipActivated"
    customer_id: int


@domain_event(category="membership")
class MembershipDeactivated(BaseEvent):
    event_type: Literal["MembershipDeactivated"] = "MembershipDeactivated"
    customer_id: int
    reason: Optional[str] = None


# =============================================================================
# SECTION: Board events
# =============================================================================

@domain_event(category="board")
class CustomerBecameBoardMember(BaseEvent):
    event_type: Literal["CustomerBecameBoardMember"] = "CustomerBecameBoardMember"
    customer_id: int


@domain_event(category="board")
class CustomerRemovedFromBoard(BaseEvent):
    event_type: Literal["CustomerRemovedFromBoard"] = "CustomerRemovedFromBoard"
    customer_id: int
