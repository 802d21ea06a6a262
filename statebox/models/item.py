"""Item ORM — rows behind the item list store.

Invariants:
    - uuid is a string primary key generated on insert (uuid4 hex form)
    - name is non-nullable, at most MAX_ITEM_NAME_LENGTH characters

Design Decisions:
    - String uuid over the PostgreSQL UUID type: the same table works on
      SQLite (dev/tests) and PostgreSQL
"""

import uuid as uuid_mod
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from statebox.core.domain_types import MAX_ITEM_NAME_LENGTH
from statebox.db.base import Base


class Item(Base):
    """Item row — one entry of an item list."""
    __tablename__ = "items"

    uuid: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid_mod.uuid4()),
    )
    name: Mapped[str] = mapped_column(
        String(MAX_ITEM_NAME_LENGTH), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
