"""
Parents HQ Handler

Everything a parent does for their children once signed in.

ENDPOINTS:
==========
    POST /parent/children                    create a child account
    GET  /parent/children                    linked children
    GET  /parent/children/{child_id}         one child with settings
    POST /parent/settings/update             change a child's permissions
    GET  /parent/children/{child_id}/parents co-parent links
    POST /parent/children/add-parent         link another parent/guardian
    POST /parent/children/remove-parent      unlink (never the last one)
    GET  /parent/activity-logs               audit + activity for a child
    GET  /parent/pending-approvals           approvals addressed to me
    GET  /parent/pending-events              children's events to decide
    POST /parent/events/{id}/approve|reject
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from cliqstr.api.dependencies import ClientInfoDep, CurrentUser
from cliqstr.api.dependencies.services import (
    get_child_account_service,
    get_event_service,
    get_parent_approval_service,
    get_parent_service,
)
from cliqstr.shared.schemas.common import MessageResponse
from cliqstr.shared.schemas.event import EventResponse
from cliqstr.shared.schemas.parent import (
    ActivityLogEntry,
    ActivityLogResponse,
    AddParentRequest,
    ChildSettingsResponse,
    ChildSummary,
    CreateChildRequest,
    CreateChildResponse,
    ParentLinkResponse,
    RemoveParentRequest,
    UpdateChildSettingsRequest,
)
from cliqstr.shared.schemas.parent_approval import ApprovalSummary
from cliqstr.shared.services.child_account_service import ChildAccountService
from cliqstr.shared.services.event_service import EventService
from cliqstr.shared.services.parent_approval_service import ParentApprovalService
from cliqstr.shared.services.parent_service import ParentService
from cliqstr.shared.utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


router = APIRouter()


def _child_summary(child: dict[str, Any]) -> ChildSummary:
    settings_row = child.pop("settings", None)
    return ChildSummary(
        **child,
        settings=ChildSettingsResponse.model_validate(settings_row) if settings_row else None,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CHILDREN
# ═══════════════════════════════════════════════════════════════════════════════


@router.post(
    "/children",
    response_model=CreateChildResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_child(
    data: CreateChildRequest,
    current_user: CurrentUser,
    client: ClientInfoDep,
    child_service: ChildAccountService = Depends(get_child_account_service),
):
    """
    Create a child account from an approval token or a child invite code.

    Raises:
        400: Token/code unusable, or Red Alert terms not accepted
        403: Caller is a child, has no plan, or the token is for another parent
        409: Username or email taken
        500: Creation failed; nothing was saved
    """
    return await child_service.create_child(
        current_user,
        data,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )


@router.get("/children", response_model=list[ChildSummary])
async def list_children(
    current_user: CurrentUser,
    parent_service: ParentService = Depends(get_parent_service),
):
    """Children linked to the caller."""
    return [_child_summary(child) for child in await parent_service.list_children(current_user)]


@router.get("/children/{child_id}", response_model=ChildSummary)
async def get_child(
    child_id: UUID,
    current_user: CurrentUser,
    parent_service: ParentService = Depends(get_parent_service),
):
    """One linked child with their settings."""
    return _child_summary(await parent_service.get_child(current_user, child_id))


@router.post("/settings/update", response_model=ChildSettingsResponse)
async def update_child_settings(
    data: UpdateChildSettingsRequest,
    current_user: CurrentUser,
    client: ClientInfoDep,
    parent_service: ParentService = Depends(get_parent_service),
):
    """
    Change a child's permissions. Unset fields keep their value.

    Raises:
        403: Link lacks can_change_settings
        404: Not linked to the child
    """
    settings_row = await parent_service.update_settings(
        current_user,
        data.child_id,
        data.settings,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ChildSettingsResponse.model_validate(settings_row)


# ═══════════════════════════════════════════════════════════════════════════════
# PARENT LINKS
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/children/{child_id}/parents", response_model=list[ParentLinkResponse])
async def list_child_parents(
    child_id: UUID,
    current_user: CurrentUser,
    parent_service: ParentService = Depends(get_parent_service),
):
    links = await parent_service.list_parents(current_user, child_id)
    return [ParentLinkResponse.model_validate(link) for link in links]


@router.post(
    "/children/add-parent",
    response_model=ParentLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_parent(
    data: AddParentRequest,
    current_user: CurrentUser,
    client: ClientInfoDep,
    parent_service: ParentService = Depends(get_parent_service),
):
    """
    Link another parent or guardian to a child.

    Raises:
        400: Email belongs to a child account
        409: Already linked
    """
    link = await parent_service.add_parent(
        current_user,
        data.child_id,
        data.email,
        data.role,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ParentLinkResponse.model_validate(link)


@router.post("/children/remove-parent", response_model=MessageResponse)
async def remove_parent(
    data: RemoveParentRequest,
    current_user: CurrentUser,
    client: ClientInfoDep,
    parent_service: ParentService = Depends(get_parent_service),
):
    """
    Remove a parent link.

    Raises:
        400: It is the child's last link
        403: Caller is neither primary nor managing parent
    """
    await parent_service.remove_parent(
        current_user,
        data.child_id,
        data.link_id,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return MessageResponse(message="Parent removed")


# ═══════════════════════════════════════════════════════════════════════════════
# ACTIVITY & PENDING ITEMS
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/activity-logs", response_model=ActivityLogResponse)
async def activity_logs(
    current_user: CurrentUser,
    child_id: UUID = Query(...),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    parent_service: ParentService = Depends(get_parent_service),
):
    entries = await parent_service.activity_logs(current_user, child_id, limit)
    return ActivityLogResponse(
        child_id=child_id,
        entries=[ActivityLogEntry(**entry) for entry in entries],
    )


@router.get("/pending-approvals", response_model=list[ApprovalSummary])
async def pending_approvals(
    current_user: CurrentUser,
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """Live approval requests addressed to the caller's email."""
    approvals = await approval_service.list_pending_for_parent(current_user)
    return [ApprovalSummary.model_validate(approval) for approval in approvals]


@router.get("/pending-events", response_model=list[EventResponse])
async def pending_events(
    current_user: CurrentUser,
    event_service: EventService = Depends(get_event_service),
):
    """Events created by the caller's children that wait for a decision."""
    events = await event_service.list_pending_for_parent(current_user)
    return [EventResponse.model_validate(event) for event in events]


@router.post("/events/{event_id}/approve", response_model=EventResponse)
async def approve_event(
    event_id: UUID,
    current_user: CurrentUser,
    client: ClientInfoDep,
    event_service: EventService = Depends(get_event_service),
):
    event = await event_service.approve(
        current_user,
        event_id,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return EventResponse.model_validate(event)


@router.post("/events/{event_id}/reject", response_model=MessageResponse)
async def reject_event(
    event_id: UUID,
    current_user: CurrentUser,
    client: ClientInfoDep,
    event_service: EventService = Depends(get_event_service),
):
    """Reject a child's event; it is removed from the calendar."""
    await event_service.reject(
        current_user,
        event_id,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return MessageResponse(message="Event rejected")
