"""Item State — immutable snapshot shape for the item list store.

Invariants:
    - Snapshots are frozen; every change builds a new ItemListState
    - data is a tuple, never a list, so nested values are immutable too
    - error holds the message of the last failed handler until a list succeeds
"""

from dataclasses import dataclass

from statebox.core.domain_types import ItemId


@dataclass(frozen=True)
class Item:
    """One row of the item list."""
    uuid: ItemId
    name: str


@dataclass(frozen=True)
class ItemListState:
    """Whole state of an item list: rows plus request status."""
    loading: bool = False
    error: str | None = None
    data: tuple[Item, ...] = ()
    selected: ItemId | None = None

    @property
    def selected_item(self) -> Item | None:
        """Row matching `selected`, if it is still in the list."""
        if self.selected is None:
            return None
        return self.find(self.selected)

    def find(self, uuid: ItemId) -> Item | None:
        for item in self.data:
            if item.uuid == uuid:
                return item
        return None
