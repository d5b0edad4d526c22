"""
Base Model Classes

The declarative base and the common mixins for timestamps and soft deletion.

Model Hierarchy:
================
    Base                    ← SQLAlchemy declarative base
       │
       ├── TimestampMixin   ← Automatic created_at/updated_at
       │
       └── SoftDeleteMixin  ← Soft delete with deleted_at

Usage:
======
    from cliqstr.shared.models.base import Base, TimestampMixin, SoftDeleteMixin

    class Cliq(Base, TimestampMixin, SoftDeleteMixin):
        __tablename__ = "cliqs"
        id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

Column Types:
=============
    uuid.UUID       → native UUID on PostgreSQL, CHAR(32) on SQLite
    dict[str, Any]  → JSONB on PostgreSQL, JSON elsewhere
    UTCDateTime     → timestamptz; values always come back timezone-aware
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column.

    Backends without a native timestamptz (SQLite) hand back naive values;
    those are read as UTC so comparisons with utc_now() never mix naive
    and aware datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Provides the type annotation map used by every model:
    dict columns are JSONB on PostgreSQL and datetimes are UTC-aware.
    """

    type_annotation_map = {
        dict[str, Any]: JSON().with_variant(JSONB(), "postgresql"),
        datetime: UTCDateTime(),
    }


class TimestampMixin:
    """
    Mixin that adds automatic timestamp tracking to models.

    - created_at: Set on INSERT (database default as fallback)
    - updated_at: Set on INSERT, refreshed by SQLAlchemy on UPDATE
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
        nullable=False,
    )


class SoftDeleteMixin:
    """
    Mixin that adds soft delete capability to models.

    NULL deleted_at means the record is active. Queries filter with:
        query.where(Model.deleted_at.is_(None))
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
        default=None,
    )

    @property
    def is_deleted(self) -> bool:
        """True once the record has been soft deleted."""
        return self.deleted_at is not None
