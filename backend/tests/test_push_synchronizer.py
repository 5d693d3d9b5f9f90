"""Tests for draining the local mutation queue to the server."""

import asyncio
import json
import uuid

import httpx
import pytest
from sqlalchemy import func, select

from babytrack.models.care import Feeding
from babytrack.offline.api import SyncApiClient
from babytrack.offline.push import PushSynchronizer, SyncInProgressError, event_to_wire
from babytrack.services.feeding import FeedingService

CHILD_ID = str(uuid.uuid4())


def feeding(**overrides) -> dict:
    data = {"child_id": CHILD_ID, "type": "bottle", "start_time": "2026-10-19T08:00:00Z", "amount": 60}
    data.update(overrides)
    return data


class FakeServer:
    """Stands in for /api/v1/sync/push and records what it received."""

    def __init__(self, reject: bool = False):
        self.reject = reject
        self.received: list[dict] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.received.extend(body["events"])
        [event] = body["events"]
        if self.reject:
            return httpx.Response(200, json={
                "processed": 0, "failed": 1, "failed_ids": [event["id"]], "server_time": "2026-10-19T09:00:00Z",
            })
        response = {"processed": 1, "failed": 0, "server_time": "2026-10-19T09:00:00Z"}
        if event["action"] == "create":
            response["results"] = {event["id"]: f"srv-{len(self.received)}"}
        return httpx.Response(200, json=response)

    def client(self) -> SyncApiClient:
        return SyncApiClient(base_url="http://fake", token="t", transport=httpx.MockTransport(self))


async def server_feedings(session_factory) -> list[Feeding]:
    async with session_factory() as session:
        return list((await session.execute(select(Feeding))).scalars().all())


async def test_three_creates_sync_and_clear_the_queue(store, api, session_factory):
    created = [
        ("feeding", await store.record("feeding", "create", payload=feeding(amount=10))),
        ("sleep", await store.record("sleep", "create", payload={
            "child_id": CHILD_ID, "type": "nap", "start_time": "2026-10-19T13:00:00Z",
        })),
        ("note", await store.record("note", "create", payload={"child_id": CHILD_ID, "content": "Rolled over"})),
    ]

    result = await PushSynchronizer(store, api).run()

    assert (result.synced, result.failed, result.deferred) == (3, 0, 0)
    assert await store.pending_count() == 0
    for entity_type, local_id in created:
        server_id = await store.resolve_entity_id(local_id)
        assert server_id != local_id
        record = await store.get(entity_type, server_id)
        assert record.pending_sync is False
    assert [f.amount for f in await server_feedings(session_factory)] == [10]


async def test_collaborator_recovers_on_third_attempt(store, api, monkeypatch):
    original = FeedingService.create
    calls = {"n": 0}

    async def flaky_create(self, data, **extra):
        calls["n"] += 1
        if calls["n"] <= 2:
            raise ValueError("database busy")
        return await original(self, data, **extra)

    monkeypatch.setattr(FeedingService, "create", flaky_create)
    await store.record("feeding", "create", payload=feeding())
    pusher = PushSynchronizer(store, api)

    first = await pusher.run()
    assert (first.synced, first.failed) == (0, 1)
    [event] = await store.queue.list()
    assert event.retry_count == 1

    second = await pusher.run()
    assert (second.synced, second.failed) == (0, 1)
    [event] = await store.queue.list()
    assert event.retry_count == 2

    third = await pusher.run()
    assert (third.synced, third.failed) == (1, 0)
    assert await store.pending_count() == 0


async def test_exhausted_event_is_not_sent(store):
    fake = FakeServer()
    await store.record("feeding", "create", payload=feeding())
    [event] = await store.queue.list()
    for _ in range(3):
        await store.queue.increment_retry(event.id)

    result = await PushSynchronizer(store, fake.client(), max_retries=3).run()

    assert result.failed == 1
    assert result.synced == 0
    assert fake.received == []
    assert await store.pending_count() == 1


async def test_rejected_event_stays_queued(store):
    fake = FakeServer(reject=True)
    local_id = await store.record("feeding", "create", payload=feeding())

    result = await PushSynchronizer(store, fake.client()).run()

    assert result.failed == 1
    [event] = await store.queue.list()
    assert event.retry_count == 1
    assert "rejected" in event.last_error
    assert (await store.get("feeding", local_id)).pending_sync is True


async def test_timeout_counts_as_failure(store):
    async def hang(request):
        raise httpx.ReadTimeout("timed out", request=request)

    api = SyncApiClient(base_url="http://fake", token="t", transport=httpx.MockTransport(hang))
    await store.record("feeding", "create", payload=feeding())

    result = await PushSynchronizer(store, api).run()

    assert result.failed == 1
    [event] = await store.queue.list()
    assert event.retry_count == 1
    assert event.last_error


async def test_server_error_counts_as_failure(store):
    api = SyncApiClient(
        base_url="http://fake", token="t",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    await store.record("note", "create", payload={"child_id": CHILD_ID, "content": "hi"})

    result = await PushSynchronizer(store, api).run()
    assert result.failed == 1
    assert (await store.queue.list())[0].retry_count == 1


async def test_confirmed_event_is_not_resubmitted(store):
    fake = FakeServer()
    await store.record("feeding", "create", payload=feeding())
    pusher = PushSynchronizer(store, fake.client())

    await pusher.run()
    second = await pusher.run()

    assert len(fake.received) == 1
    assert (second.synced, second.failed) == (0, 0)


async def test_concurrent_run_is_refused(store):
    entered = asyncio.Event()
    release = asyncio.Event()

    async def slow(request):
        entered.set()
        await release.wait()
        event = json.loads(request.content)["events"][0]
        return httpx.Response(200, json={
            "processed": 1, "failed": 0, "results": {event["id"]: "srv-1"}, "server_time": "x",
        })

    api = SyncApiClient(base_url="http://fake", token="t", transport=httpx.MockTransport(slow))
    await store.record("feeding", "create", payload=feeding())
    pusher = PushSynchronizer(store, api)

    running = asyncio.create_task(pusher.run())
    await entered.wait()
    assert pusher.running
    with pytest.raises(SyncInProgressError):
        await pusher.run()

    release.set()
    result = await running
    assert result.synced == 1
    assert not pusher.running


async def test_failure_defers_later_events_for_same_record(store):
    fake = FakeServer(reject=True)
    local_id = await store.record("feeding", "create", payload=feeding())
    await store.record("feeding", "update", local_id, feeding(amount=99))
    await store.record("sleep", "create", payload={"child_id": CHILD_ID, "type": "nap"})

    result = await PushSynchronizer(store, fake.client()).run()

    assert (result.synced, result.failed, result.deferred) == (0, 2, 1)
    sent = [(e["type"], e["action"]) for e in fake.received]
    assert sent == [("feeding", "create"), ("sleep", "create")]
    create, update, _ = await store.queue.list()
    assert create.retry_count == 1
    assert update.retry_count == 0


async def test_placeholder_is_remapped_for_later_events(store, api, session_factory):
    local_id = await store.record("feeding", "create", payload=feeding(amount=40))
    await store.record("feeding", "update", local_id, feeding(amount=45))

    result = await PushSynchronizer(store, api).run()
    assert result.synced == 2

    server_id = await store.resolve_entity_id(local_id)
    [record] = await server_feedings(session_factory)
    assert str(record.id) == server_id
    assert record.amount == 45

    await store.record("feeding", "delete", server_id)
    result = await PushSynchronizer(store, api).run()
    assert result.synced == 1
    assert await server_feedings(session_factory) == []


async def test_events_are_not_rewritten_by_remap(store):
    fake = FakeServer()
    local_id = await store.record("feeding", "create", payload=feeding())
    await store.record("feeding", "delete", local_id)
    create, delete = await store.queue.list()

    await PushSynchronizer(store, fake.client()).run()

    assert fake.received[1]["entity_id"] == "srv-1"
    assert delete.entity_id == local_id
    assert event_to_wire(delete, None)["entity_id"] == ""
    assert "data" not in fake.received[1]
    assert fake.received[0]["data"] == create.payload


async def test_duplicate_delivery_is_acknowledged(store, api, session_factory):
    await store.record("feeding", "create", payload=feeding())
    [event] = await store.queue.list()
    wire = event_to_wire(event, None)

    # The server applied it but the device never heard back
    first = await api.push(store.client_id, [wire])

    result = await PushSynchronizer(store, api).run()
    assert result.synced == 1
    assert await store.resolve_entity_id(event.local_id) == first["results"][event.id]

    async with session_factory() as session:
        total = (await session.execute(select(func.count()).select_from(Feeding))).scalar_one()
    assert total == 1


async def test_update_on_server_id_waits_behind_failed_placeholder_update(store):
    sent: list[dict] = []

    async def reject_amount_one(request):
        [event] = json.loads(request.content)["events"]
        sent.append(event)
        if (event.get("data") or {}).get("amount") == 1:
            return httpx.Response(200, json={
                "processed": 0, "failed": 1, "failed_ids": [event["id"]], "server_time": "2026-10-19T09:00:00Z",
            })
        results = {event["id"]: "srv-1"} if event["action"] == "create" else None
        return httpx.Response(200, json={
            "processed": 1, "failed": 0, "results": results, "server_time": "2026-10-19T09:00:00Z",
        })

    api = SyncApiClient(base_url="http://fake", token="t", transport=httpx.MockTransport(reject_amount_one))
    pusher = PushSynchronizer(store, api)
    local_id = await store.record("feeding", "create", payload=feeding())
    await store.record("feeding", "update", local_id, feeding(amount=1))

    first = await pusher.run()
    assert (first.synced, first.failed) == (1, 1)

    await store.record("feeding", "update", "srv-1", feeding(amount=2))
    sent.clear()
    second = await pusher.run()

    assert (second.synced, second.failed, second.deferred) == (0, 1, 1)
    assert [e["data"]["amount"] for e in sent] == [1]
    assert [e["entity_id"] for e in sent] == ["srv-1"]
    assert await store.pending_count() == 2


async def test_malformed_push_reply_counts_as_failure(store):
    api = SyncApiClient(
        base_url="http://fake", token="t",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["unexpected"])),
    )
    await store.record("feeding", "create", payload=feeding())
    await store.record("sleep", "create", payload={"child_id": CHILD_ID, "type": "nap"})

    result = await PushSynchronizer(store, api).run()

    assert (result.synced, result.failed) == (0, 2)
    assert [e.retry_count for e in await store.queue.list()] == [1, 1]


async def test_non_json_push_reply_counts_as_failure(store):
    api = SyncApiClient(
        base_url="http://fake", token="t",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>captive portal</html>")),
    )
    await store.record("note", "create", payload={"child_id": CHILD_ID, "content": "hi"})

    result = await PushSynchronizer(store, api).run()
    assert result.failed == 1
