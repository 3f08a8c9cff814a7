"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from app.models.test_item import TestItem  # noqa: F401
