"""
Parent Approval Handler

Endpoints behind the approval link a parent receives by email.

ONBOARDING:
===========
The web app never works out the next step itself. It asks:

    GET /parent-approval/state?token=T   →  {step, redirect_url, ...}

and follows redirect_url. Sign-up, sign-in, plan selection and child
creation each move the approval forward; the next /state call reflects it.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from cliqstr.api.dependencies import CurrentUser, OptionalUser
from cliqstr.api.dependencies.services import get_parent_approval_service
from cliqstr.api.handlers.auth_handler import set_session_cookie
from cliqstr.shared.schemas.common import MessageResponse
from cliqstr.shared.schemas.parent_approval import (
    ApprovalSummary,
    ApprovalTokenRequest,
    OnboardingStateResponse,
    ParentAuthResponse,
    ParentSignInRequest,
    ParentSignupRequest,
    ResendApprovalLinkRequest,
    ResumeResponse,
)
from cliqstr.shared.schemas.user import AccountResponse, UserResponse
from cliqstr.shared.services.parent_approval_service import ParentApprovalService


router = APIRouter()

# Mounted separately under /help
help_router = APIRouter()


def _auth_response(result: dict) -> ParentAuthResponse:
    return ParentAuthResponse(
        user=UserResponse.model_validate(result["user"]),
        account=AccountResponse.model_validate(result["account"]),
        access_token=result["access_token"],
        expires_in=result["expires_in"],
        approval=ApprovalSummary.model_validate(result["approval"]),
        redirect_url=result["redirect_url"],
    )


@router.get("/check", response_model=ApprovalSummary)
async def check_approval(
    token: str = Query(..., min_length=1),
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """
    Approval summary for a token.

    Raises:
        400: Unknown or expired token
    """
    approval = await approval_service.check(token)
    return ApprovalSummary.model_validate(approval)


@router.get("/state", response_model=OnboardingStateResponse)
async def onboarding_state(
    current_user: OptionalUser,
    token: str = Query(..., min_length=1),
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """Where the parent is in onboarding, and where to send them next."""
    state = await approval_service.get_state(token, current_user)
    return OnboardingStateResponse(
        step=state["step"],
        redirect_url=state["redirect_url"],
        approval=ApprovalSummary.model_validate(state["approval"]),
        parent_account_exists=state["parent_account_exists"],
        parent_role=state["parent_role"],
        has_plan=state["has_plan"],
        signed_in_as_parent=state["signed_in_as_parent"],
    )


@router.post(
    "/signup",
    response_model=ParentAuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def parent_signup(
    data: ParentSignupRequest,
    response: Response,
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """
    New parent signs up from an approval link.

    Raises:
        400: Token unusable, email mismatch, or parent under age
        409: Account exists; sign in instead
    """
    result = await approval_service.signup_parent(
        token=data.approval_token,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password=data.password,
        birthdate=data.birthdate,
    )
    set_session_cookie(response, result["access_token"], result["expires_in"])
    return _auth_response(result)


@router.post("/sign-in", response_model=ParentAuthResponse)
async def parent_sign_in(
    data: ParentSignInRequest,
    response: Response,
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """Existing adult or parent signs in from an approval link."""
    result = await approval_service.sign_in_parent(
        token=data.approval_token,
        email=data.email,
        password=data.password,
    )
    set_session_cookie(response, result["access_token"], result["expires_in"])
    return _auth_response(result)


@router.post("/decline", response_model=MessageResponse)
async def decline_approval(
    data: ApprovalTokenRequest,
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """
    Parent declines the request. The token is the credential.

    Raises:
        409: Already completed or declined
    """
    await approval_service.decline(data.approval_token)
    return MessageResponse(message="Request declined")


@router.get("/resume", response_model=ResumeResponse)
async def resume_approval(
    current_user: CurrentUser,
    approval_id: UUID = Query(...),
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """Signed-in parent picks an approval back up."""
    approval, redirect_url = await approval_service.resume(approval_id, current_user)
    return ResumeResponse(approval_id=approval.id, redirect_url=redirect_url)


@help_router.post("/resend-approval-link", response_model=MessageResponse)
async def resend_approval_link(
    data: ResendApprovalLinkRequest,
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """Email the newest live approval link. The reply never reveals whether one exists."""
    await approval_service.resend_link(data.email)
    return MessageResponse(
        message="If there is a pending request for this email, we've sent a new link."
    )
