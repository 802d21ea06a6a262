"""Stream Helpers — SSE framing for snapshot and event streams.

Invariants:
    - Every SSE frame is one `data:` line of JSON followed by a blank line
    - Snapshots are converted to builtins before json.dumps (no custom encoder)
"""

import json
from typing import Any

from statebox.core.snapshot import snapshot_to_data

# SSE headers prevent proxy/browser buffering of streamed events.
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


def snapshot_event(store: str, value: Any, path: str | None = None) -> dict:
    event = {"type": "snapshot", "store": store, "data": snapshot_to_data(value)}
    if path is not None:
        event["type"] = "property"
        event["path"] = path
    return event


def store_event(store: str, name: str, payload: Any) -> dict:
    return {
        "type": "event",
        "store": store,
        "name": name,
        "data": snapshot_to_data(payload),
    }
