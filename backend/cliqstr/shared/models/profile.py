"""
Profile and ChildSettings Models

Profile is the social face of a user (username, about text, what parts of
the birthday to show). ChildSettings hangs off a child's profile and holds
the permissions a parent controls.

SAMPLE CHILD SETTINGS (safe defaults):
┌──────────────────────────────────────────────────────────────────────────────┐
│ can_join_public_cliqs      │ false                                           │
│ can_create_public_cliqs    │ false                                           │
│ is_silently_monitored      │ true                                            │
│ ai_moderation_level        │ "strict"                                        │
│ can_share_youtube          │ false                                           │
│ invite_requires_approval   │ true                                            │
│ receive_ai_alerts          │ true                                            │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from typing import Optional
import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, TimestampMixin
from cliqstr.shared.models.enums import AiModerationLevel


class Profile(Base, TimestampMixin):
    """Public profile. Holds no legal name or birthdate."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    about: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    show_year: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    show_month_day: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    ai_moderation_level: Mapped[str] = mapped_column(
        String(16),
        default=AiModerationLevel.STRICT.value,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Profile(username={self.username})>"


class ChildSettings(Base, TimestampMixin):
    """
    Parent-controlled permissions for a child.

    Column defaults are the safe defaults applied when a child account
    is created; parents relax them from Parents HQ.
    """

    __tablename__ = "child_settings"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    profile_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # INVITES
    # ═══════════════════════════════════════════════════════════════════════════

    can_send_invites: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_invite_children: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_invite_adults: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    invite_requires_approval: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # CLIQS
    # ═══════════════════════════════════════════════════════════════════════════

    can_create_public_cliqs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_create_private_cliqs: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    can_create_semi_private_cliqs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_join_public_cliqs: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # EVENTS & CONTENT
    # ═══════════════════════════════════════════════════════════════════════════

    can_create_events: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    events_require_approval: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    can_share_youtube: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # MONITORING
    # ═══════════════════════════════════════════════════════════════════════════

    is_silently_monitored: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    receive_ai_alerts: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    ai_moderation_level: Mapped[str] = mapped_column(
        String(16),
        default=AiModerationLevel.STRICT.value,
        nullable=False,
    )
    visibility_level: Mapped[str] = mapped_column(String(16), default="private", nullable=False)
