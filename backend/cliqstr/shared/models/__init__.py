"""
Cliqstr SQLAlchemy Models

All database models for the Cliqstr application.

Model Hierarchy:
================
    User ──1:1── Account
      ├── Profile ──1:1── ChildSettings (children only)
      ├── ParentLink (parent_id / child_id)
      ├── ParentConsent, ParentAuditLog
      ├── Plan ──1:N── PlanMembership
      └── UserActivityLog

    ParentApproval ──▶ Invite ──▶ Cliq
                                   ├── Membership
                                   ├── CliqNotice
                                   ├── Post ◀── RedAlert
                                   └── Event ──1:N── EventRsvp

Usage:
======
    from cliqstr.shared.models import User, Account, ParentApproval, Invite
"""

from cliqstr.shared.models.base import Base, TimestampMixin, SoftDeleteMixin, utc_now
from cliqstr.shared.models.enums import (
    AccountRole,
    AiModerationLevel,
    ApprovalContext,
    ApprovalStatus,
    AuditAction,
    CliqPrivacy,
    InviteStatus,
    InviteType,
    MemberAction,
    MembershipRole,
    ModerationStatus,
    NoticeType,
    OnboardingStep,
    ParentLinkRole,
    ParentState,
    PlanMemberRole,
    PlanMemberStatus,
    RedAlertStatus,
    RedAlertTrigger,
    RsvpStatus,
    SetupStage,
    TargetState,
)
from cliqstr.shared.models.user import User, Account
from cliqstr.shared.models.profile import Profile, ChildSettings
from cliqstr.shared.models.cliq import Cliq, Membership, CliqNotice
from cliqstr.shared.models.invite import Invite
from cliqstr.shared.models.parent import (
    FULL_PARENT_PERMISSIONS,
    SECONDARY_PARENT_PERMISSIONS,
    ParentApproval,
    ParentAuditLog,
    ParentConsent,
    ParentLink,
)
from cliqstr.shared.models.plan import Plan, PlanMembership
from cliqstr.shared.models.post import Post, RedAlert
from cliqstr.shared.models.event import Event, EventRsvp
from cliqstr.shared.models.activity_log import UserActivityLog

__all__ = [
    # Base classes and mixins
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "utc_now",
    # Enums
    "AccountRole",
    "AiModerationLevel",
    "ApprovalContext",
    "ApprovalStatus",
    "AuditAction",
    "CliqPrivacy",
    "InviteStatus",
    "InviteType",
    "MemberAction",
    "MembershipRole",
    "ModerationStatus",
    "NoticeType",
    "OnboardingStep",
    "ParentLinkRole",
    "ParentState",
    "PlanMemberRole",
    "PlanMemberStatus",
    "RedAlertStatus",
    "RedAlertTrigger",
    "RsvpStatus",
    "SetupStage",
    "TargetState",
    # Models
    "User",
    "Account",
    "Profile",
    "ChildSettings",
    "Cliq",
    "Membership",
    "CliqNotice",
    "Invite",
    "FULL_PARENT_PERMISSIONS",
    "SECONDARY_PARENT_PERMISSIONS",
    "ParentApproval",
    "ParentAuditLog",
    "ParentConsent",
    "ParentLink",
    "Plan",
    "PlanMembership",
    "Post",
    "RedAlert",
    "Event",
    "EventRsvp",
    "UserActivityLog",
]
