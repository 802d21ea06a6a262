"""Boundary Protocols — contracts between containers and their data sources.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - Containers reach IO only through these Protocol types
    - Implementations raise StateBoxError subclasses (or anything else) on
      failure; the container folds the failure into its snapshot

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass AsyncMock or fakes
    - Async methods: implementations do IO, containers await them in handlers
"""

from typing import Protocol

from statebox.core.domain_types import ItemId
from statebox.core.item_state import Item


class ItemRepository(Protocol):
    """Contract for the item list data source — implemented by infrastructure."""
    async def list_items(self) -> list[Item]: ...
    async def create_item(self, name: str) -> Item: ...
    async def rename_item(self, uuid: ItemId, name: str) -> Item: ...
    async def delete_item(self, uuid: ItemId) -> None: ...
