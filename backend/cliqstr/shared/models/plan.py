"""
Plan Models

A Plan is the subscription record owned by a parent or adult; children and
other family members are attached through PlanMembership.

    Plan (owner) ───1:N─── PlanMembership (owner + members)

current_members is recounted from active memberships on every change.
"""

from typing import Optional
import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cliqstr.shared.models.base import Base, TimestampMixin
from cliqstr.shared.models.enums import PlanMemberRole, PlanMemberStatus


class Plan(Base, TimestampMixin):
    """Subscription plan instance for one owner."""

    __tablename__ = "plans"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    plan_key: Mapped[str] = mapped_column(String(32), nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    max_members: Mapped[int] = mapped_column(Integer, nullable=False)
    current_members: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    billing_cycle: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    is_group_plan: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)

    @property
    def available_slots(self) -> int:
        return max(self.max_members - self.current_members, 0)


class PlanMembership(Base, TimestampMixin):
    """User attached to a plan."""

    __tablename__ = "plan_memberships"
    __table_args__ = (UniqueConstraint("plan_id", "user_id", name="uq_plan_memberships_plan_user"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    plan_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(16), default=PlanMemberRole.MEMBER.value, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=PlanMemberStatus.ACTIVE.value, nullable=False)
