"""API test fixtures — FastAPI test client over a registry with a fake repository.

Invariants:
    - Every test gets a fresh registry and an empty in-memory repository
    - app.state.registry restored after each test

Design Decisions:
    - Lifespan not run (httpx ASGITransport): the fixture installs the registry
      the lifespan would have built, via the same build_registry()
"""

import uuid as uuid_mod

import pytest
from httpx import ASGITransport, AsyncClient

from statebox.core.domain_types import ItemId
from statebox.core.errors import DataSourceError, ResourceNotFoundError
from statebox.core.item_state import Item
from statebox.main import app, build_registry


class FakeItemRepository:
    """Dict-backed ItemRepository; `fail_next` makes the next call raise."""

    def __init__(self):
        self.rows: dict[str, Item] = {}
        self.fail_next: str | None = None

    def _check(self) -> None:
        if self.fail_next:
            message, self.fail_next = self.fail_next, None
            raise DataSourceError(message, "fake")

    async def list_items(self) -> list[Item]:
        self._check()
        return list(self.rows.values())

    async def create_item(self, name: str) -> Item:
        self._check()
        item = Item(ItemId(str(uuid_mod.uuid4())), name)
        self.rows[item.uuid] = item
        return item

    async def rename_item(self, uuid: ItemId, name: str) -> Item:
        self._check()
        if uuid not in self.rows:
            raise ResourceNotFoundError("Item", uuid)
        self.rows[uuid] = Item(uuid, name)
        return self.rows[uuid]

    async def delete_item(self, uuid: ItemId) -> None:
        self._check()
        if uuid not in self.rows:
            raise ResourceNotFoundError("Item", uuid)
        del self.rows[uuid]


@pytest.fixture
def repository():
    return FakeItemRepository()


@pytest.fixture
def registry(repository):
    registry = build_registry(repository)
    yield registry
    registry.close()


@pytest.fixture
async def client(registry):
    """FastAPI test client with the registry installed on app.state."""
    original = getattr(app.state, "registry", None)
    app.state.registry = registry
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.state.registry = original
