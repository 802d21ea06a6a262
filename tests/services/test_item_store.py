"""Item Store — tests for the concrete list/create/rename/delete/select handlers.

Tests cover:
    - list publishes a loading snapshot, then the loaded rows
    - delete publishes the remaining rows with other fields unchanged and
      emits the deleted uuid after the snapshot
    - create / rename update rows and emit the affected item
    - select is synchronous and local
    - repository failures are folded into `error`, preserving unrelated fields
    - all actions are registered; unknown ones raise
    - a cancelled list publishes loading=False before re-raising
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from statebox.core.domain_types import ITEM_CREATED, ITEM_DELETED, ITEM_RENAMED
from statebox.core.errors import (
    DataSourceError, ResourceNotFoundError, UnknownMutationError,
)
from statebox.core.item_state import Item, ItemListState
from statebox.schemas.item_mutations import (
    CreateItem, DeleteItem, ListItems, RenameItem, SelectItem,
)
from statebox.services.item_store import ItemStore


def _make_mock_repository():
    """Create a mock ItemRepository with async methods."""
    repository = AsyncMock()
    repository.list_items = AsyncMock(return_value=[])
    repository.create_item = AsyncMock()
    repository.rename_item = AsyncMock()
    repository.delete_item = AsyncMock(return_value=None)
    return repository


def _record(store: ItemStore) -> list[ItemListState]:
    snapshots: list[ItemListState] = []
    store.observe().subscribe(snapshots.append)
    return snapshots


# --- Registration -------------------------------------------------------------

def test_store_has_all_5_actions():
    store = ItemStore(_make_mock_repository())
    assert store.actions == {"list", "create", "rename", "delete", "select"}


def test_default_initial_snapshot():
    store = ItemStore(_make_mock_repository())
    assert store.peek() == ItemListState(loading=False, error=None, data=())


async def test_unknown_action_raises():
    store = ItemStore(_make_mock_repository())
    with pytest.raises(UnknownMutationError):
        await store.mutate({"action": "archive", "uuid": "1"})


# --- list ---------------------------------------------------------------------

async def test_list_publishes_loading_then_data():
    repository = _make_mock_repository()
    repository.list_items.return_value = [Item("1", "A")]
    store = ItemStore(repository, ItemListState(loading=False, error=None, data=()))
    snapshots = _record(store)

    await store.mutate({"action": "list"})

    assert snapshots[1:] == [
        ItemListState(loading=True, error=None, data=()),
        ItemListState(loading=False, error=None, data=(Item("1", "A"),)),
    ]


async def test_list_clears_previous_error():
    repository = _make_mock_repository()
    store = ItemStore(repository, ItemListState(error="old failure"))
    await store.mutate(ListItems())
    assert store.peek().error is None


async def test_list_failure_sets_error_and_keeps_data():
    repository = _make_mock_repository()
    repository.list_items.side_effect = DataSourceError("timeout", "items")
    initial = ItemListState(data=(Item("1", "A"),), selected="1")
    store = ItemStore(repository, initial)
    snapshots = _record(store)

    await store.mutate(ListItems())

    final = store.peek()
    assert final.loading is False
    assert final.error == "Data source 'items' failed: timeout"
    assert final.data == initial.data
    assert final.selected == "1"
    assert len(snapshots) == 3


async def test_list_failure_with_plain_exception():
    repository = _make_mock_repository()
    repository.list_items.side_effect = ConnectionError()
    store = ItemStore(repository)

    await store.mutate(ListItems())

    assert store.peek().error == "ConnectionError"


async def test_cancelled_list_clears_loading_and_reraises():
    repository = _make_mock_repository()
    release = asyncio.Event()

    async def blocked():
        await release.wait()
        return []

    repository.list_items.side_effect = blocked
    store = ItemStore(repository, ItemListState(data=(Item("1", "A"),)))
    snapshots = _record(store)

    task = asyncio.create_task(store.mutate(ListItems()))
    await asyncio.sleep(0)
    assert store.peek().loading is True

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.peek() == ItemListState(loading=False, data=(Item("1", "A"),))
    assert len(snapshots) == 3


# --- delete -------------------------------------------------------------------

async def test_delete_removes_row_and_emits_uuid():
    repository = _make_mock_repository()
    initial = ItemListState(
        loading=False, error="stale", data=(Item("1", "A"), Item("2", "B")), selected="2",
    )
    store = ItemStore(repository, initial)
    timeline = []
    store.observe().subscribe(lambda s: timeline.append(("state", s)))
    store.listen(ITEM_DELETED).subscribe(lambda p: timeline.append(("event", p)))

    await store.mutate(DeleteItem(uuid="1"))

    repository.delete_item.assert_awaited_once_with("1")
    expected = ItemListState(
        loading=False, error="stale", data=(Item("2", "B"),), selected="2",
    )
    assert timeline[1:] == [("state", expected), ("event", "1")]


async def test_delete_failure_emits_nothing():
    repository = _make_mock_repository()
    repository.delete_item.side_effect = ResourceNotFoundError("Item", "9")
    store = ItemStore(repository, ItemListState(data=(Item("1", "A"),)))
    events = []
    store.listen(ITEM_DELETED).subscribe(events.append)

    await store.mutate(DeleteItem(uuid="9"))

    assert events == []
    assert store.peek().data == (Item("1", "A"),)
    assert store.peek().error == "Item '9' not found"


async def test_delete_failure_does_not_clear_loading_of_other_request():
    repository = _make_mock_repository()
    repository.delete_item.side_effect = DataSourceError("down", "items")
    store = ItemStore(repository, ItemListState(loading=True))

    await store.mutate(DeleteItem(uuid="1"))

    assert store.peek().loading is True


# --- create / rename ----------------------------------------------------------

async def test_create_appends_row_and_emits_item():
    repository = _make_mock_repository()
    repository.create_item.return_value = Item("2", "B")
    store = ItemStore(repository, ItemListState(data=(Item("1", "A"),)))
    created = []
    store.listen(ITEM_CREATED).subscribe(created.append)

    await store.mutate({"action": "create", "name": "  B  "})

    repository.create_item.assert_awaited_once_with("B")
    assert store.peek().data == (Item("1", "A"), Item("2", "B"))
    assert created == [Item("2", "B")]


async def test_rename_replaces_row_in_place():
    repository = _make_mock_repository()
    repository.rename_item.return_value = Item("1", "Z")
    store = ItemStore(repository, ItemListState(data=(Item("1", "A"), Item("2", "B"))))
    renamed = []
    store.listen(ITEM_RENAMED).subscribe(renamed.append)

    await store.mutate(RenameItem(uuid="1", name="Z"))

    assert store.peek().data == (Item("1", "Z"), Item("2", "B"))
    assert renamed == [Item("1", "Z")]


async def test_rename_observed_through_property_path():
    repository = _make_mock_repository()
    repository.rename_item.return_value = Item("1", "Z")
    store = ItemStore(repository, ItemListState(data=(Item("1", "A"),)))
    names = []
    store.observe_property("data[0].name").subscribe(names.append)

    await store.mutate(SelectItem(uuid="1"))
    await store.mutate(RenameItem(uuid="1", name="Z"))

    assert names == ["A", "Z"]


async def test_create_failure_sets_error():
    repository = _make_mock_repository()
    repository.create_item.side_effect = DataSourceError("quota", "items")
    store = ItemStore(repository)
    await store.mutate(CreateItem(name="A"))
    assert store.peek().error == "Data source 'items' failed: quota"
    assert store.peek().data == ()


# --- select -------------------------------------------------------------------

async def test_select_sets_and_clears_selection():
    store = ItemStore(_make_mock_repository(), ItemListState(data=(Item("1", "A"),)))

    await store.mutate(SelectItem(uuid="1"))
    assert store.peek().selected_item == Item("1", "A")

    await store.mutate({"action": "select", "uuid": None})
    assert store.peek().selected is None


async def test_selected_item_none_when_row_gone():
    store = ItemStore(_make_mock_repository(), ItemListState(data=(Item("1", "A"),)))
    await store.mutate(SelectItem(uuid="2"))
    assert store.peek().selected_item is None
    assert store.peek().find("1") == Item("1", "A")
