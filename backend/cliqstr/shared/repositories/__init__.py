"""
Repository Pattern Implementations

Repositories encapsulate database queries and provide a clean API for data access.

Repository Hierarchy:
=====================
    BaseRepository[ModelType]            ← Generic CRUD operations
         │
         ├── UserRepository, AccountRepository
         ├── ProfileRepository, ChildSettingsRepository
         ├── ParentApprovalRepository, ParentLinkRepository,
         │   ParentConsentRepository, ParentAuditLogRepository
         ├── InviteRepository
         ├── PlanRepository, PlanMembershipRepository
         ├── CliqRepository, MembershipRepository, CliqNoticeRepository
         ├── PostRepository, RedAlertRepository
         ├── EventRepository, EventRsvpRepository
         └── ActivityLogRepository

Usage Example:
==============
    from cliqstr.shared.repositories import InviteRepository, MembershipRepository

    async def auto_join(db: AsyncSession, user_id: UUID, email: str):
        invites = await InviteRepository(db).list_pending_adult_for_email(email, utc_now())
        memberships = MembershipRepository(db)
        ...
"""

from cliqstr.shared.repositories.base import BaseRepository
from cliqstr.shared.repositories.user_repository import AccountRepository, UserRepository
from cliqstr.shared.repositories.profile_repository import (
    ChildSettingsRepository,
    ProfileRepository,
)
from cliqstr.shared.repositories.parent_repository import (
    ParentApprovalRepository,
    ParentAuditLogRepository,
    ParentConsentRepository,
    ParentLinkRepository,
)
from cliqstr.shared.repositories.invite_repository import InviteRepository
from cliqstr.shared.repositories.plan_repository import PlanMembershipRepository, PlanRepository
from cliqstr.shared.repositories.cliq_repository import (
    CliqNoticeRepository,
    CliqRepository,
    MembershipRepository,
)
from cliqstr.shared.repositories.post_repository import PostRepository, RedAlertRepository
from cliqstr.shared.repositories.event_repository import EventRepository, EventRsvpRepository
from cliqstr.shared.repositories.activity_log_repository import ActivityLogRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "AccountRepository",
    "ProfileRepository",
    "ChildSettingsRepository",
    "ParentApprovalRepository",
    "ParentAuditLogRepository",
    "ParentConsentRepository",
    "ParentLinkRepository",
    "InviteRepository",
    "PlanRepository",
    "PlanMembershipRepository",
    "CliqRepository",
    "CliqNoticeRepository",
    "MembershipRepository",
    "PostRepository",
    "RedAlertRepository",
    "EventRepository",
    "EventRsvpRepository",
    "ActivityLogRepository",
]
