"""Tests for the append-only event store backends."""

import asyncio
import json
import os

import pytest

from membership_sync.common.exceptions.exceptions import EventStoreNotInitialized, StoreUnavailable
from membership_sync.config.event_store_config import EventStoreConfig
from membership_sync.customer.events import CustomerCreated, MembershipActivated
from membership_sync.infra.event_store.event_store import (
    InMemoryEventStore,
    JsonlEventStore,
    create_and_initialize_event_store,
    create_event_store,
)
from tests.factories import customer_payload


def fail_once(func):
    """Wrap an os call so its first invocation raises OSError."""
    calls = []

    def wrapper(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise OSError(5, "Input/output error")
        return func(*args, **kwargs)

    return wrapper


class TestInMemoryEventStore:

    async def test_sequence_starts_at_one(self, event_store):
        seq = await event_store.append(MembershipActivated(customer_id=1))
        assert seq == 1
        assert await event_store.last_sequence() == 1

    async def test_read_all_is_oldest_first(self, event_store):
        for customer_id in (3, 1, 2):
            await event_store.append(MembershipActivated(customer_id=customer_id))

        envelopes = await event_store.read_all()

        assert [e.sequence_number for e in envelopes] == [1, 2, 3]
        assert [e.event_data["customer_id"] for e in envelopes] == [3, 1, 2]

    async def test_read_since_returns_later_events_only(self, event_store):
        for customer_id in range(1, 6):
            await event_store.append(MembershipActivated(customer_id=customer_id))

        assert [e.sequence_number for e in await event_store.read_since(3)] == [4, 5]
        assert [e.sequence_number for e in await event_store.read_since(0)] == [1, 2, 3, 4, 5]
        assert await event_store.read_since(5) == []
        assert [e.sequence_number for e in await event_store.read_since(1, limit=2)] == [2, 3]

    async def test_concurrent_appends_are_gap_free(self, event_store):
        sequences = await asyncio.gather(*[
            event_store.append(MembershipActivated(customer_id=i)) for i in range(50)
        ])

        assert sorted(sequences) == list(range(1, 51))
        assert [e.sequence_number for e in await event_store.read_all()] == list(range(1, 51))

    async def test_envelope_carries_event_and_metadata(self, event_store):
        event = CustomerCreated(customer=customer_payload(7))

        envelope = await event_store.append_envelope(event, metadata={"source": "webhook"})

        assert envelope.event_id == event.event_id
        assert envelope.event_type == "CustomerCreated"
        assert envelope.metadata == {"source": "webhook"}
        assert envelope.to_event_object() == event

    async def test_read_all_returns_a_copy(self, event_store):
        await event_store.append(MembershipActivated(customer_id=1))
        envelopes = await event_store.read_all()
        envelopes.clear()
        assert await event_store.count() == 1


class TestJsonlEventStore:

    async def test_events_survive_reopen(self, tmp_path):
        path = tmp_path / "events.jsonl"
        store = JsonlEventStore(path, fsync=False)
        await store.initialize()
        await store.append(CustomerCreated(customer=customer_payload(1)))
        await store.append(MembershipActivated(customer_id=1))

        reopened = JsonlEventStore(path, fsync=False)
        await reopened.initialize()

        envelopes = await reopened.read_all()
        assert [e.event_type for e in envelopes] == ["CustomerCreated", "MembershipActivated"]
        assert await reopened.append(MembershipActivated(customer_id=2)) == 3

    async def test_one_json_object_per_line(self, tmp_path):
        path = tmp_path / "events.jsonl"
        store = JsonlEventStore(path)
        await store.initialize()
        await store.append(MembershipActivated(customer_id=9))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["sequence_number"] == 1
        assert record["event_data"]["customer_id"] == 9

    async def test_failed_write_raises_and_does_not_consume_sequence(self, tmp_path):
        path = tmp_path / "events.jsonl"
        store = JsonlEventStore(path, fsync=False)
        await store.initialize()

        path.mkdir()
        with pytest.raises(StoreUnavailable):
            await store.append(MembershipActivated(customer_id=1))
        assert await store.count() == 0

        path.rmdir()
        assert await store.append(MembershipActivated(customer_id=1)) == 1

    async def test_failed_fsync_leaves_no_record_behind(self, tmp_path, monkeypatch):
        path = tmp_path / "events.jsonl"
        store = JsonlEventStore(path)
        await store.initialize()
        monkeypatch.setattr(os, "fsync", fail_once(os.fsync))

        with pytest.raises(StoreUnavailable):
            await store.append(MembershipActivated(customer_id=1))
        assert await store.append(MembershipActivated(customer_id=2)) == 1

        reopened = JsonlEventStore(path)
        await reopened.initialize()
        envelopes = await reopened.read_all()
        assert [e.sequence_number for e in envelopes] == [1]
        assert envelopes[0].event_data["customer_id"] == 2
        assert len(path.read_text(encoding="utf-8").splitlines()) == 1

    async def test_unrecoverable_append_refuses_further_writes(self, tmp_path, monkeypatch):
        path = tmp_path / "events.jsonl"
        store = JsonlEventStore(path)
        await store.initialize()
        monkeypatch.setattr(os, "fsync", fail_once(os.fsync))
        monkeypatch.setattr(os, "truncate", fail_once(os.truncate))

        with pytest.raises(StoreUnavailable):
            await store.append(MembershipActivated(customer_id=1))
        with pytest.raises(StoreUnavailable, match="reopen"):
            await store.append(MembershipActivated(customer_id=2))
        assert await store.count() == 0

    async def test_corrupt_line_fails_initialize(self, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text("this is not json\n", encoding="utf-8")

        with pytest.raises(StoreUnavailable):
            await JsonlEventStore(path).initialize()

    async def test_torn_trailing_write_is_discarded(self, tmp_path):
        path = tmp_path / "events.jsonl"
        store = JsonlEventStore(path, fsync=False)
        await store.initialize()
        await store.append(MembershipActivated(customer_id=1))
        with path.open("a", encoding="utf-8") as f:
            f.write('{"event_id": "half-writ')

        reopened = JsonlEventStore(path, fsync=False)
        await reopened.initialize()
        assert await reopened.count() == 1
        assert await reopened.append(MembershipActivated(customer_id=2)) == 2

        again = JsonlEventStore(path, fsync=False)
        await again.initialize()
        assert [e.sequence_number for e in await again.read_all()] == [1, 2]

    async def test_append_before_initialize_is_rejected(self, tmp_path):
        store = JsonlEventStore(tmp_path / "events.jsonl")
        with pytest.raises(EventStoreNotInitialized):
            await store.append(MembershipActivated(customer_id=1))


class TestFactory:

    def test_default_backend_is_memory(self):
        assert isinstance(create_event_store(EventStoreConfig(backend="memory")), InMemoryEventStore)

    async def test_jsonl_backend(self, tmp_path):
        config = EventStoreConfig(backend="jsonl", jsonl_path=str(tmp_path / "log" / "events.jsonl"), fsync=False)

        store = await create_and_initialize_event_store(config)

        assert isinstance(store, JsonlEventStore)
        assert store.get_configuration()["path"].endswith("events.jsonl")
        assert (tmp_path / "log").is_dir()
