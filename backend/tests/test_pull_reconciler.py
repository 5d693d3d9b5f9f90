"""Tests for folding pulled server changes into the local store."""

import uuid

import httpx

from babytrack.offline.api import SyncApiClient
from babytrack.offline.pull import PullReconciler
from babytrack.offline.push import event_to_wire

CHILD_ID = str(uuid.uuid4())


def server_event(action: str, entity_id: str, data: dict | None = None, type_: str = "feeding") -> dict:
    event = {
        "id": str(uuid.uuid4()),
        "type": type_,
        "action": action,
        "entity_id": entity_id,
        "timestamp": "2026-10-19T09:00:00Z",
        "client_id": "device-b",
    }
    if data is not None:
        event["data"] = data
    return event


class PagedServer:
    """Serves a fixed list of pull pages and records the checkpoints asked for."""

    def __init__(self, pages: list[dict]):
        self.pages = pages
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(dict(request.url.params))
        return httpx.Response(200, json=self.pages[len(self.requests) - 1])

    def client(self) -> SyncApiClient:
        return SyncApiClient(base_url="http://fake", token="t", transport=httpx.MockTransport(self))


async def test_create_update_delete_are_applied(store):
    reconciler = PullReconciler(store, PagedServer([]).client())

    applied, skipped = await reconciler.apply_events([
        server_event("create", "srv-1", {"child_id": CHILD_ID, "amount": 50}),
        server_event("update", "srv-1", {"child_id": CHILD_ID, "amount": 70}),
        server_event("create", "srv-2", {"child_id": CHILD_ID, "amount": 10}),
        server_event("delete", "srv-2"),
    ])

    assert (applied, skipped) == (4, 0)
    record = await store.get("feeding", "srv-1")
    assert record.data["amount"] == 70
    assert record.data["id"] == "srv-1"
    assert record.pending_sync is False
    assert await store.get("feeding", "srv-2") is None


async def test_delete_of_absent_record_is_harmless(store):
    reconciler = PullReconciler(store, PagedServer([]).client())
    applied, skipped = await reconciler.apply_events([server_event("delete", "never-seen")])
    assert (applied, skipped) == (1, 0)


async def test_unknown_values_are_skipped_not_fatal(store):
    reconciler = PullReconciler(store, PagedServer([]).client())

    applied, skipped = await reconciler.apply_events([
        server_event("create", "x-1", {}, type_="diaper"),
        server_event("archive", "x-2", {}),
        server_event("create", "", {}),
        server_event("deactivate", "m-1", type_="medication"),
        server_event("create", "srv-3", {"child_id": CHILD_ID}),
    ])

    assert (applied, skipped) == (1, 4)
    assert await store.get("feeding", "srv-3") is not None


async def test_pending_local_change_is_not_overwritten(store):
    await PullReconciler(store, PagedServer([]).client()).apply_events([
        server_event("create", "srv-1", {"child_id": CHILD_ID, "amount": 50}),
    ])
    await store.record("feeding", "update", "srv-1", {"child_id": CHILD_ID, "amount": 55})

    applied, skipped = await PullReconciler(store, PagedServer([]).client()).apply_events([
        server_event("update", "srv-1", {"child_id": CHILD_ID, "amount": 99}),
        server_event("delete", "srv-1"),
    ])

    assert (applied, skipped) == (0, 2)
    record = await store.get("feeding", "srv-1")
    assert record.data["amount"] == 55
    assert record.pending_sync is True


async def test_pull_all_follows_has_more_and_saves_checkpoint(store):
    server = PagedServer([
        {"events": [server_event("create", "srv-1", {"child_id": CHILD_ID})],
         "server_time": "2026-10-19T09:00:00Z", "has_more": True},
        {"events": [server_event("create", "srv-2", {"child_id": CHILD_ID})],
         "server_time": "2026-10-19T09:05:00Z", "has_more": False},
    ])

    result = await PullReconciler(store, server.client()).pull_all()

    assert result.pages == 2
    assert result.applied == 2
    assert result.has_more is False
    assert result.error is None
    assert server.requests[0] == {"client_id": "device-a"}
    assert server.requests[1]["last_sync"] == "2026-10-19T09:00:00Z"
    assert await store.get_checkpoint() == "2026-10-19T09:05:00Z"


async def test_pull_all_resumes_from_stored_checkpoint(store):
    await store.set_checkpoint("2026-10-18T00:00:00Z")
    server = PagedServer([{"events": [], "server_time": "2026-10-19T10:00:00Z", "has_more": False}])

    await PullReconciler(store, server.client()).pull_all()

    assert server.requests[0]["last_sync"] == "2026-10-18T00:00:00Z"
    assert await store.get_checkpoint() == "2026-10-19T10:00:00Z"


async def test_transport_failure_keeps_checkpoint(store):
    await store.set_checkpoint("2026-10-18T00:00:00Z")

    def offline(request):
        raise httpx.ConnectError("network unreachable", request=request)

    api = SyncApiClient(base_url="http://fake", token="t", transport=httpx.MockTransport(offline))
    result = await PullReconciler(store, api).pull_all()

    assert result.pages == 0
    assert "unreachable" in result.error
    assert await store.get_checkpoint() == "2026-10-18T00:00:00Z"


async def test_pull_against_real_server(store, make_store, api):
    other = await make_store("device-b")
    await other.record("note", "create", payload={"child_id": CHILD_ID, "content": "Slept through"})
    [event] = await other.queue.list()

    pushed = await api.push(other.client_id, [event_to_wire(event, None)])
    server_id = pushed["results"][event.id]

    result = await PullReconciler(store, api).pull_all()

    assert result.applied == 1
    note = await store.get("note", server_id)
    assert note.data["content"] == "Slept through"
    assert note.data["author_id"] == "parent-1"


async def test_malformed_pull_reply_keeps_checkpoint(store):
    await store.set_checkpoint("2026-10-18T00:00:00Z")
    api = SyncApiClient(
        base_url="http://fake", token="t",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["unexpected"])),
    )

    result = await PullReconciler(store, api).pull_all()

    assert result.pages == 0
    assert result.error
    assert await store.get_checkpoint() == "2026-10-18T00:00:00Z"
