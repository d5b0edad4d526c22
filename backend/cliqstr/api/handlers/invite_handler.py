"""
Invite Handler

Cliq invite endpoints: create, validate, accept, decline, list pending.

INVITE TYPES:
=============
    adult  → emailed to the invitee: /invite/accept?code=cliq-xxxxxx
    child  → emailed to the child's parent as a parent approval link;
             the child joins when the parent creates the account
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from cliqstr.api.dependencies import CurrentUser
from cliqstr.api.dependencies.services import get_invite_service
from cliqstr.shared.schemas.common import MessageResponse
from cliqstr.shared.schemas.invite import (
    InviteAcceptResponse,
    InviteCodeRequest,
    InviteCreateRequest,
    InviteCreateResponse,
    InviteDeclineRequest,
    InviteValidationResponse,
    PendingInviteResponse,
)
from cliqstr.shared.services.invite_service import InviteService


router = APIRouter()


@router.post(
    "",
    response_model=InviteCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invite(
    data: InviteCreateRequest,
    current_user: CurrentUser,
    invite_service: InviteService = Depends(get_invite_service),
):
    """
    Invite an adult, or a child through their parent, to a cliq.

    Raises:
        400: Target email belongs to a child account (PARENT_EMAIL_REQUIRED)
        403: Caller is not a member or lacks invite permission
        404: Cliq not found
    """
    return await invite_service.create_invite(current_user, data)


@router.get("/validate", response_model=InviteValidationResponse)
async def validate_invite(
    code: Optional[str] = Query(None, description="Invite join code"),
    invite_service: InviteService = Depends(get_invite_service),
):
    """
    Check an invite code before showing the accept page.

    Errors carry `details.reason`: missing_code, not_found, expired,
    not_pending or used.
    """
    return await invite_service.validate(code)


@router.post("/accept", response_model=InviteAcceptResponse)
async def accept_invite(
    data: InviteCodeRequest,
    current_user: CurrentUser,
    invite_service: InviteService = Depends(get_invite_service),
):
    """Accept an adult invite addressed to the caller."""
    return await invite_service.accept(current_user, data.code)


@router.post("/decline", response_model=MessageResponse)
async def decline_invite(
    data: InviteDeclineRequest,
    invite_service: InviteService = Depends(get_invite_service),
):
    """Decline an invite by code. No sign-in needed: the code is the credential."""
    await invite_service.decline(data.code, data.reason)
    return MessageResponse(message="Invite declined")


@router.get("/pending", response_model=list[PendingInviteResponse])
async def list_pending_invites(
    current_user: CurrentUser,
    invite_service: InviteService = Depends(get_invite_service),
):
    """Adult invites waiting on the caller's email."""
    invites = await invite_service.list_pending(current_user)
    return [PendingInviteResponse.model_validate(invite) for invite in invites]
