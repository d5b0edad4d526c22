"""
Cliq Models

A cliq is a group. Members post, see notices and share a calendar.

Model Hierarchy:
================
    Cliq
       ├── Membership[]   (unique per user)
       ├── CliqNotice[]   (owner announcements, optional expiry)
       ├── Post[]
       ├── Event[]
       └── RedAlert[]
"""

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, SoftDeleteMixin, TimestampMixin
from cliqstr.shared.models.enums import CliqPrivacy, MembershipRole, NoticeType


class Cliq(Base, TimestampMixin, SoftDeleteMixin):
    """Group owned by one user."""

    __tablename__ = "cliqs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    privacy: Mapped[str] = mapped_column(String(16), default=CliqPrivacy.PRIVATE.value, nullable=False)
    min_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Cliq(id={self.id}, name={self.name})>"


class Membership(Base, TimestampMixin):
    """User ↔ cliq membership."""

    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "cliq_id", name="uq_memberships_user_cliq"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cliq_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cliqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(16), default=MembershipRole.MEMBER.value, nullable=False)


class CliqNotice(Base, TimestampMixin):
    """Notice pinned to a cliq until it expires."""

    __tablename__ = "cliq_notices"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    cliq_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cliqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(16), default=NoticeType.ADMIN.value, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
