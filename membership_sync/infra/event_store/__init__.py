from membership_sync.infra.event_store.event_envelope import EventEnvelope
from membership_sync.infra.event_store.event_store import (
    EventStore,
    InMemoryEventStore,
    JsonlEventStore,
    create_event_store,
    create_and_initialize_event_store,
)

__all__ = [
    "EventEnvelope",
    "EventStore",
    "InMemoryEventStore",
    "JsonlEventStore",
    "create_event_store",
    "create_and_initialize_event_store",
]
