# =============================================================================
# File: membership_sync/infra/event_bus/event_decorators.py
# Description: Auto-registration decorator for domain events
#              Every event class is registered under its Literal event_type
# =============================================================================

import logging
import inspect
import threading
from typing import Type, Dict, Any, Optional, Set

from pydantic import BaseModel

log = logging.getLogger("membership_sync.event_bus.decorators")

_REGISTRY_LOCK = threading.Lock()

_AUTO_REGISTERED_EVENTS: Dict[str, Type[BaseModel]] = {}

_DOMAIN_EVENTS: Dict[str, Set[str]] = {}

_EVENT_METADATA: Dict[str, Dict[str, Any]] = {}

KNOWN_DOMAINS = ("customer", "subscription")


def event_type_of(event_class: Type[BaseModel]) -> str:
    """Read the Literal default of `event_type`, falling back to the class name."""
    field_info = event_class.model_fields.get('event_type')
    if field_info is not None and isinstance(field_info.default, str):
        return field_info.default
    return event_class.__name__


def _domain_of(module_name: str) -> str:
    for part in module_name.split("."):
        if part in KNOWN_DOMAINS:
            return part
    return "unknown"


def domain_event(
        *,
        category: str = "domain",
        description: Optional[str] = None,
):
    """
    Decorator for auto-registering domain events in the event registry.

    Usage:
        @domain_event(category="membership")
        class MembershipActivated(BaseEvent):
            event_type: Literal["MembershipActivated"] = "MembershipActivated"
            customer_id: int

    Args:
        category: Event category (customer, membership, board, subscription)
        description: Optional description for documentation
    """

    def decorator(event_class: Type[BaseModel]) -> Type[BaseModel]:
        if not (inspect.isclass(event_class) and issubclass(event_class, BaseModel)):
            raise TypeError(
                f"@domain_event can only be applied to Pydantic BaseModel classes. "
                f"{event_class!r} is not a BaseModel."
            )

        event_type = event_type_of(event_class)
        module_name = event_class.__module__
        domain = _domain_of(module_name)

        with _REGISTRY_LOCK:
            existing_class = _AUTO_REGISTERED_EVENTS.get(event_type)
            if existing_class is event_class:
                return event_class
            if existing_class is not None:
                log.warning(
                    f"Event type '{event_type}' collision: "
                    f"already registered by {existing_class.__module__}.{existing_class.__name__}, "
                    f"now registering {module_name}.{event_class.__name__}"
                )

            _AUTO_REGISTERED_EVENTS[event_type] = event_class
            _DOMAIN_EVENTS.setdefault(domain, set()).add(event_type)
            _EVENT_METADATA[event_type] = {
                "event_class": event_class,
                "category": category,
                "domain": domain,
                "module": module_name,
                "description": description or event_class.__doc__,
            }

            log.debug(f"Auto-registered event: {event_type} (domain={domain}, category={category})")

        return event_class

    return decorator


# =============================================================================
# Registry Access Functions
# =============================================================================

def get_auto_registered_events() -> Dict[str, Type[BaseModel]]:
    """Get all auto-registered events (event_type -> model class)."""
    return _AUTO_REGISTERED_EVENTS.copy()


def get_domain_events(domain: str) -> Set[str]:
    """Get all event types for a specific domain."""
    return _DOMAIN_EVENTS.get(domain, set()).copy()


def get_event_metadata(event_type: str) -> Optional[Dict[str, Any]]:
    """Get metadata for an event type."""
    return _EVENT_METADATA.get(event_type)
