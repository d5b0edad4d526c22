"""
Cliq Handler

Cliqs and what lives inside them: members, posts, notices and the
calendar.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from cliqstr.api.dependencies import CurrentUser
from cliqstr.api.dependencies.services import get_cliq_service, get_event_service
from cliqstr.shared.models.enums import MemberAction
from cliqstr.shared.schemas.cliq import (
    CliqCreateRequest,
    CliqResponse,
    MemberActionRequest,
    MemberResponse,
    NoticeCreateRequest,
    NoticeResponse,
    PostCreateRequest,
    PostResponse,
)
from cliqstr.shared.schemas.common import MessageResponse, PaginationParams
from cliqstr.shared.schemas.event import (
    EventCreateRequest,
    EventResponse,
    EventWithRsvps,
    RsvpCounts,
)
from cliqstr.shared.services.cliq_service import CliqService
from cliqstr.shared.services.event_service import EventService
from cliqstr.shared.utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


router = APIRouter()


# ═══════════════════════════════════════════════════════════════════════════════
# CLIQS
# ═══════════════════════════════════════════════════════════════════════════════


@router.post(
    "",
    response_model=CliqResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_cliq(
    data: CliqCreateRequest,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    """
    Create a cliq owned by the caller.

    Raises:
        403: No plan, or a child without permission for this privacy
    """
    cliq = await cliq_service.create_cliq(current_user, data)
    return CliqResponse.model_validate(cliq)


@router.get("", response_model=list[CliqResponse])
async def list_my_cliqs(
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    """Cliqs the caller belongs to."""
    cliqs = await cliq_service.list_my_cliqs(current_user)
    return [CliqResponse.model_validate(cliq) for cliq in cliqs]


@router.get("/{cliq_id}", response_model=CliqResponse)
async def get_cliq(
    cliq_id: UUID,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    cliq, _ = await cliq_service.require_member(current_user, cliq_id)
    return CliqResponse.model_validate(cliq)


@router.get("/{cliq_id}/members", response_model=list[MemberResponse])
async def list_members(
    cliq_id: UUID,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    members = await cliq_service.list_members(current_user, cliq_id)
    return [MemberResponse(**member) for member in members]


MEMBER_ACTION_MESSAGES = {
    MemberAction.PROMOTE: "Member promoted to moderator",
    MemberAction.DEMOTE: "Moderator demoted to member",
    MemberAction.REMOVE: "Member removed from cliq",
}


@router.post("/{cliq_id}/member-actions", response_model=MessageResponse)
async def member_action(
    cliq_id: UUID,
    data: MemberActionRequest,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    """
    Promote, demote or remove a member.

    Raises:
        400: Action does not fit the member's role
        403: Caller is not the owner (or a moderator, for removals)
        404: Target is not a member
    """
    await cliq_service.apply_member_action(current_user, cliq_id, data.target_user_id, data.action)
    return MessageResponse(message=MEMBER_ACTION_MESSAGES[data.action])


# ═══════════════════════════════════════════════════════════════════════════════
# POSTS
# ═══════════════════════════════════════════════════════════════════════════════


@router.post(
    "/{cliq_id}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    cliq_id: UUID,
    data: PostCreateRequest,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    post = await cliq_service.create_post(current_user, cliq_id, data.content)
    return PostResponse.model_validate(post)


@router.get("/{cliq_id}/posts", response_model=list[PostResponse])
async def list_posts(
    cliq_id: UUID,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cliq_service: CliqService = Depends(get_cliq_service),
):
    """Visible posts, newest first. Suspended posts are left out."""
    pagination = PaginationParams(page=page, per_page=per_page)
    posts = await cliq_service.list_posts(
        current_user,
        cliq_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return [PostResponse.model_validate(post) for post in posts]


# ═══════════════════════════════════════════════════════════════════════════════
# NOTICES
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/{cliq_id}/notices", response_model=list[NoticeResponse])
async def list_notices(
    cliq_id: UUID,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    """Notices that have not expired."""
    notices = await cliq_service.list_notices(current_user, cliq_id)
    return [NoticeResponse.model_validate(notice) for notice in notices]


@router.post(
    "/{cliq_id}/notices",
    response_model=NoticeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_notice(
    cliq_id: UUID,
    data: NoticeCreateRequest,
    current_user: CurrentUser,
    cliq_service: CliqService = Depends(get_cliq_service),
):
    """
    Pin a notice to the cliq.

    Raises:
        403: Caller is not the owner
    """
    notice = await cliq_service.create_notice(current_user, cliq_id, data.content, data.expires_at)
    return NoticeResponse.model_validate(notice)


# ═══════════════════════════════════════════════════════════════════════════════
# EVENTS
# ═══════════════════════════════════════════════════════════════════════════════


@router.post(
    "/{cliq_id}/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    cliq_id: UUID,
    data: EventCreateRequest,
    current_user: CurrentUser,
    event_service: EventService = Depends(get_event_service),
):
    """Add an event. A child's event may wait for a parent before others see it."""
    event = await event_service.create_event(current_user, cliq_id, data)
    return EventResponse.model_validate(event)


@router.get("/{cliq_id}/events", response_model=list[EventWithRsvps])
async def list_events(
    cliq_id: UUID,
    current_user: CurrentUser,
    event_service: EventService = Depends(get_event_service),
):
    rows = await event_service.list_events(current_user, cliq_id)
    return [
        EventWithRsvps(
            **EventResponse.model_validate(row["event"]).model_dump(),
            rsvps=RsvpCounts(**row["rsvps"]),
            my_rsvp=row["my_rsvp"],
        )
        for row in rows
    ]
