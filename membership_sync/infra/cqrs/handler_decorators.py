# =============================================================================
# File: membership_sync/infra/cqrs/handler_decorators.py
# Description: Explicit event -> handler mapping for projectors and reactors
#              @projects(...)  - read model updates (replayed on rebuild)
#              @reacts_to(...) - side effects (live events only, never replayed)
# =============================================================================

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Dict, FrozenSet, Tuple, Type

from membership_sync.common.base.base_model import BaseEvent
from membership_sync.infra.event_bus.event_decorators import event_type_of
from membership_sync.infra.event_store.event_envelope import EventEnvelope

log = logging.getLogger("membership_sync.cqrs.handlers")

PROJECTOR = "projector"
REACTOR = "reactor"

_HANDLER_ATTR = "_membership_sync_handles"

BoundHandler = Callable[[BaseEvent, EventEnvelope], Awaitable[None]]


def _mark(kind: str, event_classes: Tuple[Type[BaseEvent], ...]):
    if not event_classes:
        raise TypeError("At least one event class is required")
    for event_class in event_classes:
        if not (inspect.isclass(event_class) and issubclass(event_class, BaseEvent)):
            raise TypeError(f"{event_class!r} is not a domain event class")

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"{func.__qualname__} must be an async method")
        setattr(func, _HANDLER_ATTR, (kind, tuple(event_type_of(c) for c in event_classes)))
        return func

    return decorator


def projects(*event_classes: Type[BaseEvent]):
    """
    Mark a projector method as the handler for the given events.

    Usage:
        class CustomerProjector(Projector):
            @projects(CustomerImported, CustomerCreated)
            async def on_customer_created(self, event, envelope):
                ...
    """
    return _mark(PROJECTOR, event_classes)


def reacts_to(*event_classes: Type[BaseEvent]):
    """Mark a reactor method as the handler for the given events."""
    return _mark(REACTOR, event_classes)


class HandlerTable:
    """Per-instance event_type -> bound method table. No global registry."""

    def __init__(self, owner: str, handlers: Dict[str, BoundHandler]):
        self._owner = owner
        self._handlers = handlers

    @classmethod
    def collect(cls, instance: object, kind: str) -> HandlerTable:
        owner = type(instance).__name__
        handlers: Dict[str, BoundHandler] = {}

        for attr_name, func in inspect.getmembers(type(instance), inspect.isfunction):
            marker = getattr(func, _HANDLER_ATTR, None)
            if marker is None:
                continue
            marked_kind, event_types = marker
            if marked_kind != kind:
                raise TypeError(
                    f"{owner}.{attr_name} is marked as a {marked_kind} handler inside a {kind}"
                )
            for event_type in event_types:
                if event_type in handlers:
                    raise TypeError(f"{owner} maps {event_type} to more than one method")
                handlers[event_type] = getattr(instance, attr_name)

        log.debug(f"{owner} handles {sorted(handlers)}")
        return cls(owner, handlers)

    @property
    def event_types(self) -> FrozenSet[str]:
        return frozenset(self._handlers)

    def handles(self, event_type: str) -> bool:
        return event_type in self._handlers

    async def dispatch(self, envelope: EventEnvelope) -> None:
        handler = self._handlers.get(envelope.event_type)
        if handler is None:
            return

        event = envelope.to_event_object()
        if event is None:
            log.warning(
                f"{self._owner}: event type {envelope.event_type} is not registered, "
                f"skipping #{envelope.sequence_number}"
            )
            return

        await handler(event, envelope)


class Projector:
    """
    Derives a read model from events.

    Must be deterministic and idempotent under full replay: the bus calls
    on_start_replay() and then re-applies the whole log.
    """

    kind = PROJECTOR

    def __init__(self) -> None:
        self._table = HandlerTable.collect(self, PROJECTOR)

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def event_types(self) -> FrozenSet[str]:
        return self._table.event_types

    def handles(self, envelope: EventEnvelope) -> bool:
        return self._table.handles(envelope.event_type)

    async def apply(self, envelope: EventEnvelope) -> None:
        await self._table.dispatch(envelope)

    async def on_start_replay(self) -> None:
        """Reset owned read-model state before a replay."""


class Reactor:
    """Turns live events into side-effect commands. Never run during replay."""

    kind = REACTOR

    def __init__(self) -> None:
        self._table = HandlerTable.collect(self, REACTOR)

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def event_types(self) -> FrozenSet[str]:
        return self._table.event_types

    def handles(self, envelope: EventEnvelope) -> bool:
        return self._table.handles(envelope.event_type)

    async def apply(self, envelope: EventEnvelope) -> None:
        await self._table.dispatch(envelope)
