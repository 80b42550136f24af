# =============================================================================
# File: membership_sync/infra/event_bus/event_bus.py
# Description: In-process event dispatcher
#              Live:   append -> projectors -> reactors, in store order
#              Replay: full log -> projectors only (reactors never replayed)
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from membership_sync.common.base.base_model import BaseEvent
from membership_sync.common.exceptions.exceptions import EventStoreNotInitialized, ProjectionInconsistency
from membership_sync.config.event_bus_config import EventBusConfig, get_event_bus_config
from membership_sync.infra.cqrs.handler_decorators import PROJECTOR, REACTOR
from membership_sync.infra.event_bus.event_registry import load_domain_events
from membership_sync.infra.event_store.event_envelope import EventEnvelope
from membership_sync.infra.event_store.event_store import EventStore
from membership_sync.infra.metrics.sync_metrics import (
    dispatch_duration_seconds,
    handler_executions_total,
    handler_failures_total,
    replayed_events_total,
    replays_total,
)

log = logging.getLogger("membership_sync.event_bus")

ProgressCallback = Callable[[int, int], None]


@runtime_checkable
class EventHandler(Protocol):
    """Shared interface of projectors and reactors."""

    @property
    def name(self) -> str: ...

    kind: str

    def handles(self, envelope: EventEnvelope) -> bool: ...

    async def apply(self, envelope: EventEnvelope) -> None: ...


@runtime_checkable
class ReplayableHandler(EventHandler, Protocol):
    async def on_start_replay(self) -> None: ...


# =============================================================================
# Results
# =============================================================================

@dataclass
class HandlerFailure:
    handler: str
    kind: str
    event_type: str
    sequence_number: int
    error: str
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)


@dataclass
class DispatchResult:
    """Outcome of dispatching one stored event to its handlers."""
    sequence_number: int
    event_type: str
    handlers_run: int = 0
    failures: List[HandlerFailure] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class ReplayResult:
    events_replayed: int = 0
    last_sequence: int = 0
    handlers: List[str] = field(default_factory=list)
    failures: List[HandlerFailure] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures


# =============================================================================
# Event bus
# =============================================================================

class EventBus:
    """
    Delivers each stored event to every registered projector, then every
    registered reactor, in store sequence order.

    Two cursors track progress: `projected_through` and `reacted_through`.
    Whichever publisher holds the dispatch lock drains every envelope above
    the lower cursor, so each event reaches projectors once and reactors
    once even when publishers race. Replay holds the same lock, moves only
    the projector cursor, and never invokes a reactor.
    """

    def __init__(self, store: EventStore, config: Optional[EventBusConfig] = None):
        self._store = store
        self._config = config or get_event_bus_config()

        self._projectors: List[ReplayableHandler] = []
        self._reactors: List[EventHandler] = []

        self._dispatch_lock = asyncio.Lock()
        self._projected_through = 0
        self._reacted_through = 0
        self._replaying = False
        self._initialized = False

        # Results for sequences whose publisher is still waiting on the lock
        self._pending: Dict[int, DispatchResult] = {}

        self._stats = {
            "events_published": 0,
            "events_dispatched": 0,
            "handler_failures": 0,
            "replays": 0,
        }

    # =========================================================================
    # Registration
    # =========================================================================

    def register_projector(self, projector: ReplayableHandler) -> None:
        if getattr(projector, "kind", None) != PROJECTOR:
            raise TypeError(f"{projector!r} is not a projector")
        if projector in self._projectors:
            raise ValueError(f"Projector {projector.name} already registered")
        self._projectors.append(projector)
        log.info(f"Registered projector {projector.name}")

    def register_reactor(self, reactor: EventHandler) -> None:
        if getattr(reactor, "kind", None) != REACTOR:
            raise TypeError(f"{reactor!r} is not a reactor")
        if reactor in self._reactors:
            raise ValueError(f"Reactor {reactor.name} already registered")
        self._reactors.append(reactor)
        log.info(f"Registered reactor {reactor.name}")

    @property
    def projectors(self) -> Tuple[ReplayableHandler, ...]:
        return tuple(self._projectors)

    @property
    def reactors(self) -> Tuple[EventHandler, ...]:
        return tuple(self._reactors)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """
        Open the store and position both cursors at its head.

        Pre-existing history is never live-dispatched; rebuild read models
        from it with replay().
        """
        if self._initialized:
            return

        load_domain_events()
        await self._store.initialize()

        head = await self._store.last_sequence()
        self._projected_through = head
        self._reacted_through = head
        self._initialized = True

        log.info(
            f"EventBus initialized at sequence {head} "
            f"({len(self._projectors)} projectors, {len(self._reactors)} reactors)"
        )

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise EventStoreNotInitialized("EventBus.initialize() must be awaited before use")

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def is_replaying(self) -> bool:
        return self._replaying

    @property
    def projected_through(self) -> int:
        return self._projected_through

    @property
    def reacted_through(self) -> int:
        return self._reacted_through

    # =========================================================================
    # Live dispatch
    # =========================================================================

    async def publish(self, event: BaseEvent, metadata: Optional[Dict[str, Any]] = None) -> DispatchResult:
        """
        Append an event and dispatch it.

        Returns once every projector and reactor interested in the event has
        run. StoreUnavailable from the append propagates and nothing is
        dispatched. Handler failures are isolated and reported in the result.
        """
        self._ensure_initialized()

        envelope = await self._store.append_envelope(event, metadata)
        self._stats["events_published"] += 1

        result = DispatchResult(sequence_number=envelope.sequence_number, event_type=envelope.event_type)
        self._pending[envelope.sequence_number] = result
        try:
            async with self._dispatch_lock:
                await self._drain()
        finally:
            self._pending.pop(envelope.sequence_number, None)

        return result

    async def _drain(self) -> None:
        """Dispatch every envelope above the lower cursor. Caller holds the lock."""
        start = min(self._projected_through, self._reacted_through)
        envelopes = await self._store.read_since(start)

        for envelope in envelopes:
            seq = envelope.sequence_number
            result = self._pending.get(seq) or DispatchResult(sequence_number=seq, event_type=envelope.event_type)
            started = time.monotonic()

            if seq > self._projected_through:
                for projector in self._projectors:
                    await self._run_handler(projector, envelope, result.failures, result)
                self._projected_through = seq

            if seq > self._reacted_through:
                for reactor in self._reactors:
                    await self._run_handler(reactor, envelope, result.failures, result)
                self._reacted_through = seq

            elapsed = time.monotonic() - started
            result.duration_ms = elapsed * 1000
            dispatch_duration_seconds.labels(mode="live").observe(elapsed)
            self._stats["events_dispatched"] += 1

            if elapsed > self._config.slow_dispatch_warning_seconds:
                log.warning(
                    f"Slow dispatch of {envelope.event_type} #{seq}: {result.duration_ms:.1f}ms"
                )

    async def _run_handler(
            self,
            handler: EventHandler,
            envelope: EventEnvelope,
            failures: List[HandlerFailure],
            result: Optional[DispatchResult] = None,
    ) -> bool:
        """Run one handler with a timeout. Failures are recorded, never raised."""
        if not handler.handles(envelope):
            return False

        labels = {"handler": handler.name, "kind": handler.kind, "event_type": envelope.event_type}

        try:
            await asyncio.wait_for(
                handler.apply(envelope),
                timeout=self._config.handler_timeout_seconds
            )
            handler_executions_total.labels(**labels).inc()
            if result is not None:
                result.handlers_run += 1
            return True

        except asyncio.TimeoutError as e:
            error = f"timed out after {self._config.handler_timeout_seconds}s"
            log.error(f"{handler.name} {error} on {envelope.event_type} #{envelope.sequence_number}")
            self._record_failure(handler, envelope, failures, error, e, "TimeoutError")

        except ProjectionInconsistency as e:
            log.error(
                f"Projection inconsistency in {handler.name} at {envelope.event_type} "
                f"#{envelope.sequence_number}: {e}"
            )
            self._record_failure(handler, envelope, failures, str(e), e, type(e).__name__)

        except Exception as e:
            log.error(
                f"{handler.kind.capitalize()} {handler.name} failed on {envelope.event_type} "
                f"#{envelope.sequence_number}: {e}",
                exc_info=True
            )
            self._record_failure(handler, envelope, failures, str(e), e, type(e).__name__)

        return False

    def _record_failure(
            self,
            handler: EventHandler,
            envelope: EventEnvelope,
            failures: List[HandlerFailure],
            error: str,
            exception: BaseException,
            error_name: str,
    ) -> None:
        failures.append(HandlerFailure(
            handler=handler.name,
            kind=handler.kind,
            event_type=envelope.event_type,
            sequence_number=envelope.sequence_number,
            error=error,
            exception=exception,
        ))
        handler_failures_total.labels(
            handler=handler.name,
            kind=handler.kind,
            event_type=envelope.event_type,
            error=error_name,
        ).inc()
        self._stats["handler_failures"] += 1

    # =========================================================================
    # Replay
    # =========================================================================

    async def replay(
            self,
            kinds: Iterable[str] = (PROJECTOR,),
            on_progress: Optional[ProgressCallback] = None,
    ) -> ReplayResult:
        """
        Rebuild projector state from the full log.

        Holds the dispatch lock for the whole run, so live publishers wait.
        Each projector gets on_start_replay() before any event is applied.
        Reactors are never replayed.

        Args:
            kinds: handler kinds to replay; only "projector" is accepted
            on_progress: called with (events_replayed, head_at_start) after each event
        """
        kinds = tuple(kinds)
        if REACTOR in kinds:
            raise ValueError("Reactors are never replayed")
        unknown = set(kinds) - {PROJECTOR}
        if unknown:
            raise ValueError(f"Unknown handler kinds for replay: {sorted(unknown)}")

        self._ensure_initialized()

        result = ReplayResult()
        if not kinds:
            return result

        async with self._dispatch_lock:
            self._replaying = True
            self._stats["replays"] += 1
            started = time.monotonic()
            try:
                result.handlers = [projector.name for projector in self._projectors]
                head_at_start = await self._store.last_sequence()
                log.info(f"Replay started: {head_at_start} events -> {result.handlers}")

                for projector in self._projectors:
                    await projector.on_start_replay()

                cursor = 0
                while True:
                    batch = await self._store.read_since(cursor, limit=self._config.replay_batch_size)
                    if not batch:
                        break
                    for envelope in batch:
                        for projector in self._projectors:
                            await self._run_handler(projector, envelope, result.failures)
                        cursor = envelope.sequence_number
                        result.events_replayed += 1
                        replayed_events_total.inc()
                        if on_progress is not None:
                            on_progress(result.events_replayed, head_at_start)

                result.last_sequence = cursor
                self._projected_through = max(self._projected_through, cursor)

                elapsed = time.monotonic() - started
                result.duration_ms = elapsed * 1000
                dispatch_duration_seconds.labels(mode="replay").observe(elapsed)
                replays_total.labels(status="completed").inc()

                log.info(
                    f"Replay completed: {result.events_replayed} events in {result.duration_ms:.1f}ms, "
                    f"{len(result.failures)} handler failures"
                )
                return result

            except Exception:
                replays_total.labels(status="failed").inc()
                raise

            finally:
                self._replaying = False

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "projectors": [p.name for p in self._projectors],
            "reactors": [r.name for r in self._reactors],
            "projected_through": self._projected_through,
            "reacted_through": self._reacted_through,
            "is_replaying": self._replaying,
        }
