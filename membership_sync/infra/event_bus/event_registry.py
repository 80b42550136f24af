# =============================================================================
# File: membership_sync/infra/event_bus/event_registry.py
# Description: Event registry - event_type string -> Pydantic model
#              Domain events are auto-registered via @domain_event on import
# =============================================================================

from __future__ import annotations

from typing import Dict, List, Type, Optional

from pydantic import BaseModel

from membership_sync.infra.event_bus.event_decorators import get_auto_registered_events


def load_domain_events() -> None:
    """Import every domain events module so their decorators run."""
    import membership_sync.customer.events  # noqa: F401
    import membership_sync.subscription.events  # noqa: F401


def get_event_model(event_type: str) -> Optional[Type[BaseModel]]:
    """
    Get Pydantic model class for an event type.

    Args:
        event_type: The event type string (e.g., "MembershipActivated")

    Returns:
        Pydantic model class or None if not registered
    """
    return get_auto_registered_events().get(event_type)


def is_registered_event(event_type: str) -> bool:
    """Check if an event type is registered"""
    return event_type in get_auto_registered_events()


def get_all_event_types() -> List[str]:
    """Get sorted list of all registered event types"""
    return sorted(get_auto_registered_events())


def get_registry_stats() -> Dict[str, object]:
    """Get statistics about the event registry"""
    events: Dict[str, Type[BaseModel]] = get_auto_registered_events()
    return {
        "total_events": len(events),
        "event_types": sorted(events),
    }
