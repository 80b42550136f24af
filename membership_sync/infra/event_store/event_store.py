# =============================================================================
# File: membership_sync/infra/event_store/event_store.py
# Description: Append-only event store - single ordered log of domain events
#              InMemoryEventStore: process-local log
#              JsonlEventStore:    durable JSON-lines file, fsync'ed per append
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from membership_sync.common.base.base_model import BaseEvent
from membership_sync.common.exceptions.exceptions import EventStoreNotInitialized, StoreUnavailable
from membership_sync.config.event_store_config import EventStoreConfig, get_event_store_config
from membership_sync.infra.event_store.event_envelope import EventEnvelope
from membership_sync.infra.metrics.sync_metrics import event_append_failures_total, events_appended_total

log = logging.getLogger("membership_sync.event_store")


class EventStore(ABC):
    """
    Append-only, totally ordered log of domain events.

    Contract:
    - append(event) -> sequence_number   (the only mutation)
    - read_all()                          oldest first
    - read_since(sequence_number)         events with a greater sequence, oldest first

    Sequence numbers start at 1 and are assigned under a lock, so they are
    strictly increasing and gap-free per store instance. There is no update
    or delete operation.
    """

    backend_name: str = "abstract"

    def __init__(self) -> None:
        self._append_lock = asyncio.Lock()
        self._envelopes: List[EventEnvelope] = []
        self._initialized = False

    async def initialize(self) -> None:
        """Load existing history. Safe to call more than once."""
        self._initialized = True

    # =========================================================================
    # Append
    # =========================================================================

    async def append(self, event: BaseEvent, metadata: Optional[Dict[str, Any]] = None) -> int:
        """Append an event and return its sequence number."""
        envelope = await self.append_envelope(event, metadata)
        return envelope.sequence_number

    async def append_envelope(
            self,
            event: BaseEvent,
            metadata: Optional[Dict[str, Any]] = None
    ) -> EventEnvelope:
        """
        Append an event and return the stored envelope.

        Raises:
            StoreUnavailable: the event could not be durably persisted;
                nothing was appended and the sequence was not consumed.
        """
        if not self._initialized:
            raise EventStoreNotInitialized(f"{type(self).__name__} used before initialize()")

        async with self._append_lock:
            envelope = EventEnvelope.from_event(
                event,
                sequence_number=len(self._envelopes) + 1,
                stored_at=datetime.now(timezone.utc),
                metadata=metadata,
            )

            try:
                await self._persist(envelope)
            except StoreUnavailable:
                event_append_failures_total.labels(backend=self.backend_name).inc()
                log.error(
                    f"Append of {envelope.event_type} failed; sequence {envelope.sequence_number} not consumed"
                )
                raise

            self._envelopes.append(envelope)

        events_appended_total.labels(event_type=envelope.event_type).inc()
        log.debug(f"Appended {envelope.event_type} as #{envelope.sequence_number}")
        return envelope

    @abstractmethod
    async def _persist(self, envelope: EventEnvelope) -> None:
        """Durably write one envelope. Must raise StoreUnavailable on failure."""

    # =========================================================================
    # Read
    # =========================================================================

    async def read_all(self) -> List[EventEnvelope]:
        """All events, oldest first."""
        return list(self._envelopes)

    async def read_since(self, sequence_number: int, limit: Optional[int] = None) -> List[EventEnvelope]:
        """Events with a sequence number greater than `sequence_number`, oldest first."""
        start = max(sequence_number, 0)
        if limit is None:
            return self._envelopes[start:]
        return self._envelopes[start:start + limit]

    async def last_sequence(self) -> int:
        """Sequence number of the newest event (0 for an empty log)."""
        return len(self._envelopes)

    async def count(self) -> int:
        return len(self._envelopes)

    def get_configuration(self) -> Dict[str, Any]:
        return {"backend": self.backend_name, "initialized": self._initialized}


class InMemoryEventStore(EventStore):
    """Process-local event log. History is lost when the process exits."""

    backend_name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._initialized = True

    async def _persist(self, envelope: EventEnvelope) -> None:
        return None


class JsonlEventStore(EventStore):
    """
    Durable event log stored as one JSON object per line.

    Each append is written, flushed and (optionally) fsync'ed before the
    sequence number is handed back. A trailing line without a newline is a
    torn write that was never acknowledged; it is cut off on initialize().
    A failed append is truncated away before StoreUnavailable is raised.
    """

    backend_name = "jsonl"

    def __init__(self, path: str | Path, fsync: bool = True) -> None:
        super().__init__()
        self._path = Path(path)
        self._fsync = fsync
        self._writable = True

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        if self._initialized:
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._path.exists():
                await self._load()
        except OSError as e:
            raise StoreUnavailable(f"Cannot open event log {self._path}: {e}") from e

        self._initialized = True
        log.info(f"JsonlEventStore opened {self._path} at sequence {len(self._envelopes)}")

    async def _load(self) -> None:
        envelopes: List[EventEnvelope] = []
        good_offset = 0

        async with aiofiles.open(self._path, "r", encoding="utf-8") as f:
            async for line in f:
                if not line.endswith("\n"):
                    log.warning(
                        f"Discarding torn trailing write in {self._path} "
                        f"after sequence {len(envelopes)}"
                    )
                    break
                if not line.strip():
                    good_offset += len(line.encode("utf-8"))
                    continue

                try:
                    envelope = EventEnvelope.from_dict(json.loads(line))
                except (ValueError, KeyError, TypeError) as e:
                    raise StoreUnavailable(
                        f"Corrupt event log {self._path} at record {len(envelopes) + 1}: {e}"
                    ) from e

                expected = len(envelopes) + 1
                if envelope.sequence_number != expected:
                    raise StoreUnavailable(
                        f"Event log {self._path} out of sequence: "
                        f"expected #{expected}, found #{envelope.sequence_number}"
                    )

                envelopes.append(envelope)
                good_offset += len(line.encode("utf-8"))

        if good_offset < self._path.stat().st_size:
            await asyncio.to_thread(os.truncate, self._path, good_offset)

        self._envelopes = envelopes

    async def _persist(self, envelope: EventEnvelope) -> None:
        if not self._writable:
            raise StoreUnavailable(
                f"Event log {self._path} could not be rolled back after a failed append; reopen it"
            )

        line = json.dumps(envelope.to_dict(), separators=(",", ":"), default=str) + "\n"
        try:
            offset = await asyncio.to_thread(self._size_on_disk)
        except OSError as e:
            raise StoreUnavailable(f"Cannot stat event log {self._path}: {e}") from e

        opened = False
        try:
            async with aiofiles.open(self._path, "a", encoding="utf-8") as f:
                opened = True
                await f.write(line)
                await f.flush()
                if self._fsync:
                    await asyncio.to_thread(os.fsync, f.fileno())
        except OSError as e:
            if opened:
                await self._rollback(offset, envelope)
            raise StoreUnavailable(
                f"Failed to persist {envelope.event_type} to {self._path}: {e}"
            ) from e

    def _size_on_disk(self) -> int:
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0

    async def _rollback(self, offset: int, envelope: EventEnvelope) -> None:
        """Cut the log back to `offset` so a failed append leaves no bytes behind."""
        try:
            await asyncio.to_thread(os.truncate, self._path, offset)
        except OSError as e:
            self._writable = False
            log.critical(
                f"Could not roll back failed append of {envelope.event_type} "
                f"#{envelope.sequence_number} in {self._path}: {e}. Refusing further appends."
            )
        else:
            log.warning(f"Rolled back partial append of #{envelope.sequence_number} in {self._path}")

    def get_configuration(self) -> Dict[str, Any]:
        config = super().get_configuration()
        config.update({"path": str(self._path), "fsync": self._fsync})
        return config


# =============================================================================
# Factory
# =============================================================================

def create_event_store(config: Optional[EventStoreConfig] = None) -> EventStore:
    """Create the configured event store (not yet initialized)."""
    config = config or get_event_store_config()
    log.debug(f"Creating event store: {config.to_dict()}")

    if config.backend == "jsonl":
        return JsonlEventStore(config.jsonl_path, fsync=config.fsync)
    return InMemoryEventStore()


async def create_and_initialize_event_store(config: Optional[EventStoreConfig] = None) -> EventStore:
    """Create and initialize the configured event store."""
    store = create_event_store(config)
    await store.initialize()
    return store
