"""
Declarative base and column mixins shared by the Academic Buddy models.

Tables are unqualified (no schema) so the same metadata works on PostgreSQL
and on the SQLite database used for local runs and tests.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql.functions import now as db_now

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """
    created_at / updated_at columns.

    Values come from Python so they keep sub-second precision on SQLite too;
    the server default only covers rows inserted outside the ORM.
    """

    created_at = Column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=db_now(),
        nullable=False,
        comment="When the row was inserted",
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=db_now(),
        onupdate=utc_now,
        nullable=False,
        comment="When the row was last changed",
    )


class UUIDMixin:
    # Native UUID on PostgreSQL, CHAR(32) on SQLite
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
        comment="UUID4 primary key",
    )


__all__ = ["Base", "TimestampMixin", "UUIDMixin", "utc_now"]
