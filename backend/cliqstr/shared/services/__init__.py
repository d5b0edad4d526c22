"""
Business Logic Services

Services encapsulate business logic and coordinate between repositories,
external services, and domain rules.

Service Pattern:
================
    Handler → Service → Repository → Database
                ↘ NotificationService → EmailAdapter

Services should:
- Contain business logic and validation
- Coordinate multiple repositories if needed
- Only flush; get_db() commits once per request
- NOT handle HTTP concerns (that's for handlers)

Available Services:
===================
- AuthService: Sign-up, sign-in, sessions, upgrade to parent
- InviteService: Cliq invites, validation, accept/decline
- ParentApprovalService: Approval tokens and the onboarding state
- PlanService: Plan selection, member slots, invite auto-join
- ChildAccountService: Transactional child account creation
- ParentService: Parents HQ settings, co-parents, activity
- RedAlertService: Red Alerts, content suspension, parent notification
- CliqService / EventService: Cliqs, posts, notices, calendar
- NotificationService: Outbound email

Usage:
======
    from cliqstr.shared.services import InviteService

    service = InviteService(db)
    result = await service.create_invite(user, request)
"""

from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.services.auth_service import AuthService
from cliqstr.shared.services.parent_approval_service import ParentApprovalService
from cliqstr.shared.services.plan_service import PlanService
from cliqstr.shared.services.invite_service import InviteService
from cliqstr.shared.services.child_account_service import ChildAccountService
from cliqstr.shared.services.parent_service import ParentService
from cliqstr.shared.services.red_alert_service import RedAlertService
from cliqstr.shared.services.cliq_service import CliqService
from cliqstr.shared.services.event_service import EventService

__all__ = [
    "NotificationService",
    "AuthService",
    "ParentApprovalService",
    "PlanService",
    "InviteService",
    "ChildAccountService",
    "ParentService",
    "RedAlertService",
    "CliqService",
    "EventService",
]
