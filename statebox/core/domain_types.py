"""Domain Types — identity types, event names and limits shared across layers.

Invariants:
    - ItemId wraps the string uuid of an item — never use a bare str in domain logic
    - Event names are plain strings so listen() and emit() compare by value

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - Module constants over Enum for event names: Enum members hash by name,
      which would break dict lookups keyed by the raw event string
"""

from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ItemId = NewType("ItemId", str)
StoreName = NewType("StoreName", str)


# ─── Item store events ───────────────────────────────────────────

ITEM_CREATED = "item_created"
ITEM_RENAMED = "item_renamed"
ITEM_DELETED = "item_deleted"


# ─── Limits ──────────────────────────────────────────────────────

MAX_ITEM_NAME_LENGTH = 200
DEFAULT_DISCRIMINATOR = "action"
