"""
Service Dependencies

FastAPI dependencies for service injection.

These dependencies create service instances with proper database session injection.
Services are created per-request, which is fine because:
- Services are stateless (only hold db session reference)
- Each request gets its own db session
- No shared state between requests

Usage:
======
    from cliqstr.api.dependencies.services import get_invite_service

    @router.post("")
    async def create_invite(
        data: InviteCreateRequest,
        current_user: CurrentUser,
        invite_service: InviteService = Depends(get_invite_service),
    ):
        return await invite_service.create_invite(current_user, data)
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.api.dependencies.database import get_db
from cliqstr.shared.services import (
    AuthService,
    ChildAccountService,
    CliqService,
    EventService,
    InviteService,
    ParentApprovalService,
    ParentService,
    PlanService,
    RedAlertService,
)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
) -> AuthService:
    """
    Dependency to get AuthService instance.

    Creates a new service instance per request with the request's db session.
    """
    return AuthService(db)


async def get_parent_approval_service(
    db: AsyncSession = Depends(get_db),
) -> ParentApprovalService:
    return ParentApprovalService(db)


async def get_invite_service(
    db: AsyncSession = Depends(get_db),
) -> InviteService:
    return InviteService(db)


async def get_plan_service(
    db: AsyncSession = Depends(get_db),
) -> PlanService:
    return PlanService(db)


async def get_child_account_service(
    db: AsyncSession = Depends(get_db),
) -> ChildAccountService:
    return ChildAccountService(db)


async def get_parent_service(
    db: AsyncSession = Depends(get_db),
) -> ParentService:
    return ParentService(db)


async def get_red_alert_service(
    db: AsyncSession = Depends(get_db),
) -> RedAlertService:
    return RedAlertService(db)


async def get_cliq_service(
    db: AsyncSession = Depends(get_db),
) -> CliqService:
    return CliqService(db)


async def get_event_service(
    db: AsyncSession = Depends(get_db),
) -> EventService:
    return EventService(db)
