"""
Invite Model

An invitation to a cliq. Adult invites go to the invitee; child invites go
to the child's parent and are paired with a ParentApproval.

SAMPLE INVITE RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ join_code                │ "cliq-k7m2px"                                     │
│ invite_type              │ "adult"                                           │
│ target_email_normalized  │ "friend@example.com"                              │
│ target_state             │ "existing_user_non_parent"                        │
│ status                   │ "pending"                                         │
│ used                     │ false                                             │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import date, datetime
from typing import Optional
import uuid

from sqlalchemy import Boolean, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, TimestampMixin
from cliqstr.shared.models.enums import InviteStatus, InviteType, TargetState


class Invite(Base, TimestampMixin):
    """
    Cliq invite.

    Attributes:
        token: Long random secret (never shown in UI)
        join_code: Short human-friendly code used in links
        target_state: Account state of the target email at creation time
        status: pending → accepted → completed, or canceled
        used: Set once the invite has produced a membership or child account
    """

    __tablename__ = "invites"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    join_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # WHO / WHERE
    # ═══════════════════════════════════════════════════════════════════════════

    inviter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cliq_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cliqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    target_email_normalized: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    target_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    target_state: Mapped[str] = mapped_column(String(32), default=TargetState.NEW.value, nullable=False)
    parent_account_exists: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # TYPE & CHILD DETAILS
    # ═══════════════════════════════════════════════════════════════════════════

    invite_type: Mapped[str] = mapped_column(String(16), default=InviteType.ADULT.value, nullable=False)
    friend_first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    friend_last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    child_birthdate: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    invite_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    status: Mapped[str] = mapped_column(
        String(16),
        default=InviteStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    invited_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    declined_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Invite(code={self.join_code}, type={self.invite_type}, status={self.status})>"
