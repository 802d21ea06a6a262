"""SQL Item Repository — ItemRepository implementation over async SQLAlchemy.

Invariants:
    - One DB session per call; commit before returning
    - Returns core Item values, never ORM instances (no lazy loads leak out)
    - Missing rows raise ResourceNotFoundError; driver failures arrive as
      DatabaseError via DatabaseSessionManager

Design Decisions:
    - Takes the session manager, not a session: the store is long-lived while
      DB sessions are per-operation
"""

import logging

from sqlalchemy import select

from statebox.core.domain_types import ItemId
from statebox.core.errors import ResourceNotFoundError
from statebox.core.item_state import Item
from statebox.infrastructure.database import DatabaseSessionManager
from statebox.models.item import Item as ItemModel

logger = logging.getLogger(__name__)


class SqlItemRepository:
    """Items table access for ItemStore."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def list_items(self) -> list[Item]:
        async with self._db.session() as session:
            result = await session.execute(
                select(ItemModel).order_by(ItemModel.created_at, ItemModel.uuid),
            )
            return [_to_item(row) for row in result.scalars().all()]

    async def create_item(self, name: str) -> Item:
        async with self._db.session() as session:
            row = ItemModel(name=name)
            session.add(row)
            await session.commit()
            logger.info(f"Created item {row.uuid}")
            return _to_item(row)

    async def rename_item(self, uuid: ItemId, name: str) -> Item:
        async with self._db.session() as session:
            row = await session.get(ItemModel, uuid)
            if row is None:
                raise ResourceNotFoundError("Item", uuid)
            row.name = name
            await session.commit()
            return _to_item(row)

    async def delete_item(self, uuid: ItemId) -> None:
        async with self._db.session() as session:
            row = await session.get(ItemModel, uuid)
            if row is None:
                raise ResourceNotFoundError("Item", uuid)
            await session.delete(row)
            await session.commit()
            logger.info(f"Deleted item {uuid}")


def _to_item(row: ItemModel) -> Item:
    return Item(uuid=ItemId(row.uuid), name=row.name)
