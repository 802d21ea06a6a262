"""Snapshot Helpers — shallow-merge and JSON conversion for immutable snapshots.

Invariants:
    - merge_snapshot never mutates its input; it always builds a new value
    - Fields not named in `changes` keep their identity in the result

Design Decisions:
    - Dispatch on shape (dataclass / pydantic / mapping) instead of a base class:
      containers keep whatever snapshot type suits their feature
"""

import dataclasses
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel


def merge_snapshot(snapshot: Any, changes: Mapping[str, Any]) -> Any:
    """Return a copy of ``snapshot`` with ``changes`` applied on top."""
    if dataclasses.is_dataclass(snapshot) and not isinstance(snapshot, type):
        return dataclasses.replace(snapshot, **changes)
    if isinstance(snapshot, BaseModel):
        return snapshot.model_copy(update=dict(changes))
    if isinstance(snapshot, Mapping):
        return {**snapshot, **changes}
    raise TypeError(
        f"Cannot merge fields into snapshot of type {type(snapshot).__name__}",
    )


def snapshot_to_data(snapshot: Any) -> Any:
    """Convert a snapshot into JSON-compatible builtins (dict/list/scalars)."""
    if isinstance(snapshot, BaseModel):
        return snapshot.model_dump(mode="json")
    if dataclasses.is_dataclass(snapshot) and not isinstance(snapshot, type):
        return {
            f.name: snapshot_to_data(getattr(snapshot, f.name))
            for f in dataclasses.fields(snapshot)
        }
    if isinstance(snapshot, Mapping):
        return {str(k): snapshot_to_data(v) for k, v in snapshot.items()}
    if isinstance(snapshot, (list, tuple, set, frozenset)):
        return [snapshot_to_data(v) for v in snapshot]
    return snapshot
