"""
Enums used across the application.

Values are stored as plain text columns; the enums are the single
source of allowed values for services and schemas.
"""

from enum import Enum


class AccountRole(str, Enum):
    """Role on the Account record."""

    ADULT = "Adult"
    CHILD = "Child"
    PARENT = "Parent"
    ADMIN = "Admin"


class SetupStage(str, Enum):
    """How far a parent has got through onboarding."""

    STARTED = "started"
    PLAN_SELECTED = "plan_selected"
    CHILD_PENDING = "child_pending"
    COMPLETED = "completed"


class AiModerationLevel(str, Enum):
    STRICT = "strict"
    MODERATE = "moderate"
    RELAXED = "relaxed"


# ═══════════════════════════════════════════════════════════════════════════════
# PARENT APPROVAL
# ═══════════════════════════════════════════════════════════════════════════════


class ApprovalStatus(str, Enum):
    """
    Parent approval lifecycle.

        pending ──▶ approved ──▶ (completed_at set when the child exists)
           │
           ├──▶ declined
           └──▶ expired
    """

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    EXPIRED = "expired"


class ApprovalContext(str, Enum):
    """Where the approval request came from."""

    DIRECT_SIGNUP = "direct_signup"
    CHILD_INVITE = "child_invite"


class ParentState(str, Enum):
    """Account state of the parent email when the approval was issued."""

    NEW = "new"
    EXISTING_PARENT = "existing_parent"
    EXISTING_ADULT = "existing_adult"


class OnboardingStep(str, Enum):
    """Server-computed next step for an approval link."""

    PARENT_SIGNUP = "parent_signup"
    SIGN_IN = "sign_in"
    CHOOSE_PLAN = "choose_plan"
    CREATE_CHILD = "create_child"
    COMPLETE = "complete"
    DECLINED = "declined"
    EXPIRED = "expired"
    BLOCKED = "blocked"


class ParentLinkRole(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    GUARDIAN = "guardian"


class AuditAction(str, Enum):
    """Actions recorded in the parent audit log."""

    APPROVE_CHILD = "APPROVE_CHILD"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    ADD_PARENT = "ADD_PARENT"
    REMOVE_PARENT = "REMOVE_PARENT"
    APPROVE_EVENT = "APPROVE_EVENT"
    REJECT_EVENT = "REJECT_EVENT"


# ═══════════════════════════════════════════════════════════════════════════════
# INVITES
# ═══════════════════════════════════════════════════════════════════════════════


class InviteType(str, Enum):
    ADULT = "adult"
    CHILD = "child"


class InviteStatus(str, Enum):
    """
    Invite lifecycle.

        pending ──▶ accepted ──▶ completed
           │            │
           └────────────┴──▶ canceled
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELED = "canceled"


class TargetState(str, Enum):
    """Classification of an invite's target email."""

    NEW = "new"
    EXISTING_PARENT = "existing_parent"
    EXISTING_USER_NON_PARENT = "existing_user_non_parent"
    INVALID_CHILD = "invalid_child"


# ═══════════════════════════════════════════════════════════════════════════════
# CLIQS & CONTENT
# ═══════════════════════════════════════════════════════════════════════════════


class CliqPrivacy(str, Enum):
    PRIVATE = "private"
    SEMI_PRIVATE = "semi_private"
    PUBLIC = "public"


class MembershipRole(str, Enum):
    OWNER = "Owner"
    MODERATOR = "Moderator"
    MEMBER = "Member"


class MemberAction(str, Enum):
    """What an owner or moderator can do to another member."""

    PROMOTE = "promote"
    DEMOTE = "demote"
    REMOVE = "remove"


class NoticeType(str, Enum):
    ADMIN = "admin"
    BIRTHDAY = "birthday"
    SYSTEM = "system"


class ModerationStatus(str, Enum):
    APPROVED = "approved"
    SUSPENDED = "suspended"
    REMOVED = "removed"


class RsvpStatus(str, Enum):
    GOING = "going"
    MAYBE = "maybe"
    RAINCHECK = "raincheck"


# ═══════════════════════════════════════════════════════════════════════════════
# RED ALERT
# ═══════════════════════════════════════════════════════════════════════════════


class RedAlertTrigger(str, Enum):
    """Who raised the alert."""

    CHILD = "child"
    ADULT = "adult"
    AI = "ai"


class RedAlertStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


# ═══════════════════════════════════════════════════════════════════════════════
# PLANS
# ═══════════════════════════════════════════════════════════════════════════════


class PlanMemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class PlanMemberStatus(str, Enum):
    ACTIVE = "active"
    REMOVED = "removed"
