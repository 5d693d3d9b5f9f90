"""Tests for the device-local store and its mutation queue."""

import uuid

import pytest

from babytrack.offline.models import PendingEvent
from babytrack.offline.store import LocalStore

CHILD_ID = str(uuid.uuid4())


def feeding(**overrides) -> dict:
    data = {"child_id": CHILD_ID, "type": "bottle", "start_time": "2026-10-19T08:00:00Z", "amount": 100}
    data.update(overrides)
    return data


class TestMutationQueue:

    async def test_list_is_fifo(self, store):
        first = await store.queue.enqueue("feeding", "create", None, feeding())
        second = await store.queue.enqueue("sleep", "delete", "s-1", None)
        third = await store.queue.enqueue("feeding", "update", "f-1", feeding(amount=5))

        events = await store.queue.list()
        assert [e.id for e in events] == [first.id, second.id, third.id]
        assert [e.seq for e in events] == [1, 2, 3]
        assert all(e.retry_count == 0 for e in events)
        assert all(e.client_id == "device-a" for e in events)

    async def test_remove_is_idempotent(self, store):
        event = await store.queue.enqueue("feeding", "create", None, feeding())
        await store.queue.remove(event.id)
        await store.queue.remove(event.id)
        await store.queue.remove("never-queued")
        assert await store.queue.count() == 0

    async def test_increment_retry_adds_exactly_one(self, store):
        event = await store.queue.enqueue("feeding", "create", None, feeding())
        await store.queue.increment_retry(event.id, error="timeout")
        await store.queue.increment_retry(event.id)

        stored = await store.queue.get(event.id)
        assert stored.retry_count == 2
        assert stored.last_error == "timeout"

        await store.queue.increment_retry("gone")

    async def test_clear_and_exhausted(self, store):
        await store.queue.enqueue("feeding", "create", None, feeding())
        spent = await store.queue.enqueue("feeding", "create", None, feeding())
        for _ in range(3):
            await store.queue.increment_retry(spent.id)

        assert [e.id for e in await store.queue.exhausted(3)] == [spent.id]
        assert [e.id for e in await store.failed_events()] == [spent.id]

        await store.queue.clear()
        assert await store.queue.list() == []

    async def test_has_pending_for(self, store):
        await store.queue.enqueue("feeding", "update", "f-1", feeding())
        await store.queue.enqueue("feeding", "create", None, feeding(), local_id="local-9")

        assert await store.queue.has_pending_for(["f-1"])
        assert await store.queue.has_pending_for(["local-9"])
        assert not await store.queue.has_pending_for(["f-2"])
        assert not await store.queue.has_pending_for([])


class TestRecord:

    async def test_create_writes_record_and_event_together(self, store):
        local_id = await store.record("feeding", "create", payload=feeding())

        record = await store.get("feeding", local_id)
        assert record.pending_sync is True
        assert record.child_id == CHILD_ID
        assert record.data["amount"] == 100

        [event] = await store.queue.list()
        assert event.action == "create"
        assert event.entity_id is None
        assert event.local_id == local_id
        assert event.payload == feeding()

    async def test_update_replaces_local_data(self, store):
        local_id = await store.record("note", "create", payload={"child_id": CHILD_ID, "content": "a"})
        await store.record("note", "update", local_id, {"child_id": CHILD_ID, "content": "b"})

        record = await store.get("note", local_id)
        assert record.data["content"] == "b"
        assert [e.action for e in await store.queue.list()] == ["create", "update"]

    async def test_delete_is_optimistic(self, store):
        local_id = await store.record("sleep", "create", payload={"child_id": CHILD_ID, "type": "nap"})
        await store.record("sleep", "delete", local_id)

        assert await store.get("sleep", local_id) is None
        assert await store.pending_count() == 2

    async def test_deactivate_marks_medication_inactive(self, store):
        med_id = await store.record("medication", "create", payload={"child_id": CHILD_ID, "name": "Iron"})
        await store.record("medication", "deactivate", med_id)

        record = await store.get("medication", med_id)
        assert record.data["active"] is False
        events = await store.queue.list()
        assert events[-1].action == "deactivate"
        assert events[-1].payload is None

    @pytest.mark.parametrize("entity_type,action", [
        ("medication_log", "update"),
        ("feeding", "deactivate"),
    ])
    async def test_unsupported_pairs_are_refused(self, store, entity_type, action):
        with pytest.raises(ValueError):
            await store.record(entity_type, action, "x-1", {})
        assert await store.pending_count() == 0

    async def test_unknown_type_is_refused(self, store):
        with pytest.raises(ValueError):
            await store.record("diaper", "create", payload={})

    async def test_records_are_listed_per_child(self, store):
        sibling = str(uuid.uuid4())
        mine = await store.record("feeding", "create", payload=feeding())
        await store.record("feeding", "create", payload=feeding(child_id=sibling))
        await store.record("note", "create", payload={"child_id": CHILD_ID, "content": "x"})

        assert [r.id for r in await store.list_records("feeding", child_id=CHILD_ID)] == [mine]
        assert len(await store.list_records("feeding")) == 2

    async def test_update_of_unknown_record_leaves_no_event(self, store):
        with pytest.raises(ValueError, match="not found locally"):
            await store.record("feeding", "update", "missing", feeding())
        assert await store.pending_count() == 0


class TestConfirm:

    async def test_confirm_create_renames_placeholder(self, store):
        local_id = await store.record("feeding", "create", payload=feeding())
        [event] = await store.queue.list()

        target = await store.confirm(event, "srv-1")

        assert target == "srv-1"
        assert await store.get("feeding", local_id) is None
        record = await store.get("feeding", "srv-1")
        assert record.pending_sync is False
        assert record.synced_at is not None
        assert await store.resolve_entity_id(local_id) == "srv-1"
        assert await store.pending_count() == 0

    async def test_record_stays_pending_while_other_events_queued(self, store):
        local_id = await store.record("feeding", "create", payload=feeding())
        await store.record("feeding", "update", local_id, feeding(amount=7))
        create, update = await store.queue.list()

        await store.confirm(create, "srv-2")
        assert (await store.get("feeding", "srv-2")).pending_sync is True

        await store.confirm(update)
        assert (await store.get("feeding", "srv-2")).pending_sync is False


class TestOpen:

    async def test_generated_client_id_is_persisted(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'device.db'}"
        first = await LocalStore.open(url)
        client_id = first.client_id
        await first.close()

        again = await LocalStore.open(url)
        try:
            assert again.client_id == client_id
            assert uuid.UUID(client_id)
        finally:
            await again.close()

    async def test_explicit_client_id_wins(self, make_store):
        local = await make_store("kitchen-tablet")
        assert local.client_id == "kitchen-tablet"
        assert local.queue.client_id == "kitchen-tablet"


def test_entity_key_tracks_the_local_identity():
    assert PendingEvent(entity_id=None, local_id="loc").entity_key == "loc"
    assert PendingEvent(entity_id="loc", local_id=None).entity_key == "loc"
