"""ORM Models — SQLAlchemy declarative models for example data sources.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all
"""

from statebox.models.item import Item  # noqa: F401
