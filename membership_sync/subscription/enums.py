# =============================================================================
# File: membership_sync/subscription/enums.py
# =============================================================================

from enum import Enum


class SubscriptionStatus(str, Enum):
    """Subscription statuses used by the e-commerce platform."""
    PENDING = "pending"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"
    SWITCHED = "switched"
    EXPIRED = "expired"
    PENDING_CANCEL = "pending-cancel"
    NEED_ID_CHECK = "need-id-check"
    ID_WAS_CHECKED = "id-was-checked"

    @classmethod
    def is_known(cls, value: str) -> bool:
        return value in cls._value2member_map_
