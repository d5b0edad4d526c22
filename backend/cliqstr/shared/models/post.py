"""
Post and RedAlert Models

Posts live in a cliq. A Red Alert is a safety report against a cliq; it
may suspend posts, and suspended posts point back at the alert that
suspended them so a dismissed alert can restore them.

SAMPLE RED ALERT:
┌──────────────────────────────────────────────────────────────────────────────┐
│ trigger_type             │ "child"                                           │
│ reason                   │ "Someone is being mean in the group"              │
│ status                   │ "pending"                                         │
│ suspended_content_count  │ 3                                                 │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, SoftDeleteMixin, TimestampMixin
from cliqstr.shared.models.enums import ModerationStatus, RedAlertStatus, RedAlertTrigger


class Post(Base, TimestampMixin, SoftDeleteMixin):
    """Cliq post."""

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    cliq_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cliqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # MODERATION
    # ═══════════════════════════════════════════════════════════════════════════

    moderation_status: Mapped[str] = mapped_column(
        String(16),
        default=ModerationStatus.APPROVED.value,
        nullable=False,
    )
    suspended_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    suspended_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    suspension_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    red_alert_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("red_alerts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    @property
    def is_suspended(self) -> bool:
        return self.moderation_status == ModerationStatus.SUSPENDED.value


class RedAlert(Base, TimestampMixin):
    """Safety report against a cliq."""

    __tablename__ = "red_alerts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    cliq_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cliqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Reported post, if the alert came from one
    post_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    triggered_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    trigger_type: Mapped[str] = mapped_column(String(16), default=RedAlertTrigger.ADULT.value, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # REVIEW
    # ═══════════════════════════════════════════════════════════════════════════

    status: Mapped[str] = mapped_column(
        String(16),
        default=RedAlertStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    suspended_content_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    moderator_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
