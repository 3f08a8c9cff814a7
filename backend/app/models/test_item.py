"""TestItem ORM — the sample "test" CRUD resource.

Invariants:
    - Table name is "Test" with a camelCase "createdAt" column (shared with the
      hosted database schema the mobile client was built against)
    - id is an autoincrementing integer (serial on PostgreSQL)
    - createdAt is a naive UTC timestamp with millisecond precision
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TestItem(Base):
    """Row in the "Test" table."""
    __tablename__ = "Test"
    __test__ = False

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt",
        DateTime().with_variant(TIMESTAMP(precision=3), "postgresql"),
        nullable=False,
        default=_utcnow,
        server_default=func.current_timestamp(),
    )
