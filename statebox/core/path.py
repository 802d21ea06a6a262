"""Path Grammar — parse and resolve dot/bracket paths into nested snapshots.

Invariants:
    - parse_path never returns an empty tuple; malformed input raises InvalidPathError
    - resolve_path never raises for a valid parse: a missing key, attribute or
      index yields MISSING
    - Strings and bytes are never indexed as sequences

Design Decisions:
    - Recursive descent over a generic tree (Mapping / Sequence / attributes)
      instead of per-shape accessor functions: one resolver serves dicts,
      dataclasses and pydantic models alike
    - Mapping keys win over attributes: dict methods like "items" never shadow data

Grammar:
    path    := segment ("." segment)*
    segment := identifier ("[" digits "]")*
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from statebox.core.errors import InvalidPathError

PathSegment = str | int

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INDEX = re.compile(r"\[(\d+)\]")


class _Missing:
    """Sentinel for an unresolvable path (distinct from a resolved None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def parse_path(path: str) -> tuple[PathSegment, ...]:
    """Parse ``a.b[2].c`` into ``("a", "b", 2, "c")``.

    Raises InvalidPathError on empty paths, empty segments, bad identifiers,
    negative or non-numeric indices and unbalanced brackets.
    """
    if not isinstance(path, str):
        raise InvalidPathError(repr(path), "path must be a string")
    if not path:
        raise InvalidPathError(path, "path is empty")

    segments: list[PathSegment] = []
    for raw in path.split("."):
        if not raw:
            raise InvalidPathError(path, "empty segment")
        segments.extend(_parse_segment(path, raw))
    return tuple(segments)


def _parse_segment(path: str, raw: str) -> list[PathSegment]:
    match = _IDENTIFIER.match(raw)
    if not match:
        raise InvalidPathError(path, f"segment '{raw}' must start with an identifier")
    parts: list[PathSegment] = [match.group(0)]
    pos = match.end()
    while pos < len(raw):
        index = _INDEX.match(raw, pos)
        if not index:
            raise InvalidPathError(
                path, f"unexpected '{raw[pos:]}' in segment '{raw}'",
            )
        parts.append(int(index.group(1)))
        pos = index.end()
    return parts


def resolve_path(value: Any, segments: tuple[PathSegment, ...]) -> Any:
    """Walk ``segments`` into ``value``. Returns MISSING when any step fails."""
    current = value
    for segment in segments:
        if isinstance(segment, int):
            current = _resolve_index(current, segment)
        else:
            current = _resolve_key(current, segment)
        if current is MISSING:
            return MISSING
    return current


def _resolve_index(current: Any, index: int) -> Any:
    if isinstance(current, (str, bytes, bytearray)):
        return MISSING
    if not isinstance(current, Sequence):
        return MISSING
    if index >= len(current):
        return MISSING
    return current[index]


def _resolve_key(current: Any, key: str) -> Any:
    if current is None:
        return MISSING
    if isinstance(current, Mapping):
        return current[key] if key in current else MISSING
    if key.startswith("__"):
        return MISSING
    return getattr(current, key, MISSING)


def values_equal(previous: Any, current: Any) -> bool:
    """Change-detection policy for path observation: identity, then deep ==.

    A bool never equals a non-bool here, so 0 -> False and 1 -> True count as
    changes even though Python's == treats them as equal. Only top-level
    values get this check; nested containers compare with plain ==.
    """
    if previous is current:
        return True
    if isinstance(previous, bool) != isinstance(current, bool):
        return False
    try:
        return bool(previous == current)
    except Exception:
        # Objects whose __eq__ is not boolean (e.g. arrays) count as changed
        return False
