"""Store Routes — HTTP/SSE adapter over the registered state containers.

Invariants:
    - Reads use peek/observe/observe_property/listen only
    - Writes go through mutate() only; the route never builds snapshots
    - Malformed paths (including an empty ?path=) fail with 400 before the
      SSE response starts
    - Each generator closes its source iterator on exit, so the subscription
      is released on disconnect rather than at garbage collection

Design Decisions:
    - Registry from app.state (built by lifespan), not a module global
    - Mutation body is a plain mapping: the container validates it against its
      own closed union, so one route serves every store
    - StreamingResponse for SSE: each stream owns one subscription, released
      when the client disconnects
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import StreamingResponse

from statebox.api.routes.stream_helpers import (
    SSE_HEADERS, snapshot_event, sse_line, store_event,
)
from statebox.core.snapshot import snapshot_to_data
from statebox.core.state_container import StateContainer
from statebox.services.store_registry import StoreRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/stores", tags=["stores"])


def get_registry(request: Request) -> StoreRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Store registry not initialized")
    return registry


def get_store(
    store: str, registry: StoreRegistry = Depends(get_registry),
) -> StateContainer[Any]:
    return registry.get(store)


def _snapshot_response(container: StateContainer[Any]) -> dict:
    return {
        "store": container.name,
        "version": container.version,
        "snapshot": snapshot_to_data(container.peek()),
    }


@router.get("")
async def list_stores(registry: StoreRegistry = Depends(get_registry)):
    """Registered stores with their current versions and actions."""
    return {
        "stores": [
            {
                "name": name,
                "version": registry.get(name).version,
                "actions": sorted(registry.get(name).actions),
            }
            for name in registry.names()
        ],
    }


@router.get("/{store}")
async def read_store(container: StateContainer[Any] = Depends(get_store)):
    """Current snapshot (peek)."""
    return _snapshot_response(container)


@router.post("/{store}/mutations")
async def mutate_store(
    body: dict[str, Any] = Body(...),
    container: StateContainer[Any] = Depends(get_store),
):
    """Run one mutation and return the snapshot after its handler finished."""
    await container.mutate(body)
    return _snapshot_response(container)


@router.get("/{store}/stream")
async def stream_store(
    path: str | None = Query(None),
    container: StateContainer[Any] = Depends(get_store),
):
    """SSE stream of snapshots, or of one path when ?path= is given."""
    source = (
        container.observe_property(path) if path is not None
        else container.observe()
    )

    async def event_generator():
        try:
            async with aclosing(source.__aiter__()) as values:
                async for value in values:
                    yield sse_line(snapshot_event(container.name, value, path))
        except asyncio.CancelledError:
            logger.info(
                "Client disconnected from stream", extra={"store": container.name},
            )
            return

    return StreamingResponse(
        event_generator(), media_type="text/event-stream", headers=SSE_HEADERS,
    )


@router.get("/{store}/events/{name}")
async def stream_events(
    name: str, container: StateContainer[Any] = Depends(get_store),
):
    """SSE stream of one event name (listen). No replay."""
    source = container.listen(name)

    async def event_generator():
        try:
            async with aclosing(source.__aiter__()) as payloads:
                async for payload in payloads:
                    yield sse_line(store_event(container.name, name, payload))
        except asyncio.CancelledError:
            logger.info(
                "Client disconnected from events",
                extra={"store": container.name, "event_name": name},
            )
            return

    return StreamingResponse(
        event_generator(), media_type="text/event-stream", headers=SSE_HEADERS,
    )
