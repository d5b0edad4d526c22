"""
User and Account Models

A User is the login identity; its Account (1:1) carries the role, plan
and the person's legal name and birthdate.

Model Hierarchy:
================
    User ───1:1─── Account
      │
      ├── Profile (social identity, no name/birthdate)
      └── ParentLink (as parent or as child)

SAMPLE RECORDS:
┌──────────────────────────────────────────────────────────────────────────────┐
│ users.email         │ "parent@example.com"                                   │
│ users.is_parent     │ true                                                   │
│ accounts.role       │ "Parent"                                               │
│ accounts.plan       │ "test"                                                 │
│ accounts.setup_stage│ "plan_selected"                                        │
└──────────────────────────────────────────────────────────────────────────────┘

Children's first name, last name and birthdate are stored on Account
only. Profile is editable by its owner, Account is not.
"""

from datetime import date, datetime
from typing import Optional
import uuid

from sqlalchemy import Boolean, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, SoftDeleteMixin, TimestampMixin
from cliqstr.shared.models.enums import AccountRole, SetupStage


class User(Base, TimestampMixin, SoftDeleteMixin):
    """
    Login identity.

    Attributes:
        email: Normalized (lower-case, trimmed) email, unique
        password_hash: bcrypt hash
        is_verified: Email verified
        is_parent: Has at least once acted as a parent
        reset_token: SHA-256 of the emailed reset token, cleared once used
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    # ═══════════════════════════════════════════════════════════════════════════
    # AUTHENTICATION
    # ═══════════════════════════════════════════════════════════════════════════

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_parent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    reset_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    reset_token_expires_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class Account(Base, TimestampMixin):
    """
    Role, approval and plan state for a user.

    Attributes:
        role: Adult, Child, Parent or Admin
        is_approved: Children are unusable until a parent approves them
        plan: Selected plan key, None until chosen
        setup_stage: Parent onboarding progress
        suspended: Blocks sign-in and invites to this user
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(String(16), nullable=False, default=AccountRole.ADULT.value)

    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ═══════════════════════════════════════════════════════════════════════════
    # IDENTITY (never mirrored onto Profile)
    # ═══════════════════════════════════════════════════════════════════════════

    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    birthdate: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # ═══════════════════════════════════════════════════════════════════════════
    # PLAN & ONBOARDING
    # ═══════════════════════════════════════════════════════════════════════════

    plan: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    billing_cycle: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    setup_stage: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        default=SetupStage.STARTED.value,
    )

    suspended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<Account(user_id={self.user_id}, role={self.role})>"
