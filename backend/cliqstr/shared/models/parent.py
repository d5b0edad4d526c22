"""
Parent Models

Everything that ties a parent to a child:

    ParentApproval  ← token-keyed request for a parent to approve a child
    ParentLink      ← parent ↔ child join with permissions
    ParentConsent   ← the parent's recorded agreement (Red Alert, monitoring)
    ParentAuditLog  ← what a parent did to a child's account and when

Approval Flow:
==============
    child signup / child invite
            │
            ▼
    ParentApproval(pending) ──email──▶ parent opens /parent-approval?token=...
            │
            ▼
    parent signs up / signs in  ──▶ status = approved
            │
            ▼
    plan selected ──▶ child created ──▶ completed_at + child_id set

SAMPLE PARENT LINK:
┌──────────────────────────────────────────────────────────────────────────────┐
│ email        │ "parent@example.com"                                          │
│ role         │ "primary"                                                     │
│ permissions  │ {"can_manage_child": true, "can_change_settings": true,       │
│              │  "can_view_activity": true, "receives_notifications": true}   │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from datetime import date, datetime
from typing import Any, Optional
import uuid

from sqlalchemy import Boolean, Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, TimestampMixin
from cliqstr.shared.models.enums import (
    ApprovalContext,
    ApprovalStatus,
    ParentLinkRole,
    ParentState,
)


FULL_PARENT_PERMISSIONS: dict[str, bool] = {
    "can_manage_child": True,
    "can_change_settings": True,
    "can_view_activity": True,
    "receives_notifications": True,
}

SECONDARY_PARENT_PERMISSIONS: dict[str, bool] = {
    "can_manage_child": False,
    "can_change_settings": False,
    "can_view_activity": True,
    "receives_notifications": True,
}


class ParentApproval(Base, TimestampMixin):
    """
    Pending approval for a child account.

    The approval token is a single-use credential: once the child account
    exists (completed_at set) or the parent declines, it cannot be used again.
    """

    __tablename__ = "parent_approvals"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    approval_token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # CHILD (denormalized until the child account exists)
    # ═══════════════════════════════════════════════════════════════════════════

    child_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    child_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    child_birthdate: Mapped[date] = mapped_column(Date, nullable=False)
    child_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # PARENT
    # ═══════════════════════════════════════════════════════════════════════════

    parent_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    parent_state: Mapped[str] = mapped_column(String(32), default=ParentState.NEW.value, nullable=False)
    existing_parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    parent_mobile: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    second_parent_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # CONTEXT
    # ═══════════════════════════════════════════════════════════════════════════

    context: Mapped[str] = mapped_column(
        String(32),
        default=ApprovalContext.DIRECT_SIGNUP.value,
        nullable=False,
    )
    invite_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("invites.id", ondelete="SET NULL"),
        nullable=True,
    )
    cliq_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("cliqs.id", ondelete="SET NULL"),
        nullable=True,
    )
    inviter_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    cliq_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    status: Mapped[str] = mapped_column(
        String(16),
        default=ApprovalStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    approved_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    declined_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    child_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def child_name(self) -> str:
        return f"{self.child_first_name} {self.child_last_name}".strip()

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def __repr__(self) -> str:
        return f"<ParentApproval(id={self.id}, status={self.status}, context={self.context})>"


class ParentLink(Base, TimestampMixin):
    """
    Parent ↔ child link.

    parent_id stays NULL for a secondary parent who has not signed up yet;
    the link is matched by email until then.
    """

    __tablename__ = "parent_links"
    __table_args__ = (UniqueConstraint("email", "child_id", name="uq_parent_links_email_child"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    child_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(16), default="parent", nullable=False)
    role: Mapped[str] = mapped_column(String(16), default=ParentLinkRole.PRIMARY.value, nullable=False)
    permissions: Mapped[dict[str, Any]] = mapped_column(
        default=lambda: dict(FULL_PARENT_PERMISSIONS),
        nullable=False,
    )
    mobile_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    second_parent_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def has_permission(self, name: str) -> bool:
        """Missing keys count as granted, matching links created before the key existed."""
        return (self.permissions or {}).get(name) is not False


class ParentConsent(Base, TimestampMixin):
    """Recorded parental consent for a child account."""

    __tablename__ = "parent_consents"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    parent_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    child_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    red_alert_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    silent_monitoring_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    consented_at: Mapped[datetime] = mapped_column(nullable=False)


class ParentAuditLog(Base, TimestampMixin):
    """Append-only record of parent actions on a child account."""

    __tablename__ = "parent_audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    parent_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    child_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    old_value: Mapped[Optional[dict[str, Any]]] = mapped_column(nullable=True)
    new_value: Mapped[Optional[dict[str, Any]]] = mapped_column(nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
