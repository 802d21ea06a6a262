"""Store Routes — tests for the HTTP/SSE adapter over registered containers.

Tests cover:
    - GET /stores lists registered stores with versions and actions
    - GET /stores/{store} returns the current snapshot
    - POST /stores/{store}/mutations runs mutate and returns the new snapshot
    - unknown actions / invalid fields → 400; unknown store → 404
    - collaborator failures come back as state (200 with error field)
    - SSE streams: snapshot replay, property streams, events, bad paths
    - closing an SSE body releases its subscription at once
"""

import asyncio
import json

from statebox.api.routes.stores import stream_events, stream_store
from statebox.api.routes.stream_helpers import sse_line


def _parse_sse(chunk: str) -> dict:
    assert chunk.startswith("data: ") and chunk.endswith("\n\n")
    return json.loads(chunk[len("data: "):])


# --- Read / write -------------------------------------------------------------

async def test_list_stores(client):
    res = await client.get("/api/v1/stores")
    assert res.status_code == 200
    stores = res.json()["stores"]
    assert stores == [{
        "name": "items",
        "version": 0,
        "actions": ["create", "delete", "list", "rename", "select"],
    }]


async def test_read_store_returns_initial_snapshot(client):
    res = await client.get("/api/v1/stores/items")
    assert res.status_code == 200
    assert res.json() == {
        "store": "items",
        "version": 0,
        "snapshot": {"loading": False, "error": None, "data": [], "selected": None},
    }


async def test_create_mutation_returns_new_snapshot(client, repository):
    res = await client.post(
        "/api/v1/stores/items/mutations", json={"action": "create", "name": "A"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["version"] == 1
    assert [row["name"] for row in body["snapshot"]["data"]] == ["A"]
    assert len(repository.rows) == 1


async def test_delete_mutation_removes_row(client):
    created = await client.post(
        "/api/v1/stores/items/mutations", json={"action": "create", "name": "A"},
    )
    uuid = created.json()["snapshot"]["data"][0]["uuid"]

    res = await client.post(
        "/api/v1/stores/items/mutations", json={"action": "delete", "uuid": uuid},
    )

    assert res.status_code == 200
    assert res.json()["snapshot"]["data"] == []


async def test_failure_is_returned_as_state(client, repository):
    repository.fail_next = "offline"
    res = await client.post("/api/v1/stores/items/mutations", json={"action": "list"})
    assert res.status_code == 200
    snapshot = res.json()["snapshot"]
    assert snapshot["loading"] is False
    assert snapshot["error"] == "Data source 'fake' failed: offline"


async def test_unknown_action_returns_400(client):
    res = await client.post(
        "/api/v1/stores/items/mutations", json={"action": "archive"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "UNKNOWN_MUTATION"


async def test_invalid_fields_return_400_with_details(client):
    res = await client.post(
        "/api/v1/stores/items/mutations", json={"action": "create", "name": "   "},
    )
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "INVALID_MUTATION"
    assert error["details"][0]["field"].endswith("name")


async def test_non_object_body_returns_400(client):
    res = await client.post("/api/v1/stores/items/mutations", json=["list"])
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unknown_store_returns_404(client):
    res = await client.get("/api/v1/stores/nope")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_stream_with_empty_path_returns_400(client):
    res = await client.get("/api/v1/stores/items/stream", params={"path": ""})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_PATH"


async def test_stream_with_malformed_path_returns_400(client):
    res = await client.get("/api/v1/stores/items/stream", params={"path": "data[x]"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_PATH"


# --- SSE ----------------------------------------------------------------------

async def test_snapshot_stream_replays_current_snapshot(registry):
    store = registry.get("items")
    response = await stream_store(path=None, container=store)
    try:
        first = _parse_sse(await response.body_iterator.__anext__())
    finally:
        await response.body_iterator.aclose()

    assert response.media_type == "text/event-stream"
    assert first["type"] == "snapshot"
    assert first["data"]["data"] == []


async def test_property_stream_emits_path_value(registry):
    store = registry.get("items")
    await store.mutate({"action": "create", "name": "A"})
    response = await stream_store(path="data[0].name", container=store)
    try:
        first = _parse_sse(await response.body_iterator.__anext__())
    finally:
        await response.body_iterator.aclose()

    assert first == {
        "type": "property", "store": "items", "data": "A", "path": "data[0].name",
    }


async def test_event_stream_delivers_emitted_event(registry):
    store = registry.get("items")
    await store.mutate({"action": "create", "name": "A"})
    uuid = store.peek().data[0].uuid
    response = await stream_events(name="item_deleted", container=store)
    pending = asyncio.create_task(response.body_iterator.__anext__())
    try:
        await asyncio.sleep(0)
        await store.mutate({"action": "delete", "uuid": uuid})
        event = _parse_sse(await asyncio.wait_for(pending, timeout=1))
    finally:
        await response.body_iterator.aclose()

    assert event == {
        "type": "event", "store": "items", "name": "item_deleted", "data": uuid,
    }


async def test_stream_ends_when_registry_closes(registry):
    store = registry.get("items")
    response = await stream_store(path=None, container=store)
    chunks = []

    async def consume():
        async for chunk in response.body_iterator:
            chunks.append(chunk)

    task = asyncio.create_task(consume())
    await asyncio.sleep(0)
    registry.close()
    await asyncio.wait_for(task, timeout=1)

    assert len(chunks) == 1


def test_sse_line_format():
    assert sse_line({"type": "x", "data": "é"}) == 'data: {"type": "x", "data": "é"}\n\n'


async def test_closing_snapshot_stream_releases_subscription(registry):
    store = registry.get("items")
    response = await stream_store(path="data", container=store)
    await response.body_iterator.__anext__()
    assert store._values.subscriber_count == 1

    await response.body_iterator.aclose()

    assert store._values.subscriber_count == 0


async def test_closing_event_stream_releases_listener(registry):
    store = registry.get("items")
    response = await stream_events(name="item_created", container=store)
    pending = asyncio.create_task(response.body_iterator.__anext__())
    await asyncio.sleep(0)
    await store.mutate({"action": "create", "name": "A"})
    await asyncio.wait_for(pending, timeout=1)
    assert store._events.listener_count("item_created") == 1

    await response.body_iterator.aclose()

    assert store._events.listener_count("item_created") == 0
    assert store._events.channel_count == 0
