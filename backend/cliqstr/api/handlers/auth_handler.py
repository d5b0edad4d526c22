"""
Authentication Handler

Handles sign-up, sign-in, session and password endpoints.

ARCHITECTURE:
=============
    Handler → Service → Repository → Model
          ↘ Utils  ↗

Handlers should ONLY:
- Parse HTTP requests
- Call service methods
- Format HTTP responses

Business logic belongs in the SERVICE layer, not here.

SESSIONS:
=========
Sign-in responses carry the session twice: as an HTTP-only cookie for the
web app and as `access_token` in the body for API clients. Either is
accepted on later requests.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from cliqstr.api.dependencies import CurrentUser
from cliqstr.api.dependencies.services import get_auth_service, get_parent_approval_service
from cliqstr.config.settings import settings
from cliqstr.shared.models.enums import ApprovalContext, ParentState
from cliqstr.shared.schemas.common import MessageResponse
from cliqstr.shared.schemas.user import (
    AccountResponse,
    AuthResponse,
    ChangePasswordRequest,
    ChildSignupRequest,
    ChildSignupResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ResetTokenStatusResponse,
    SessionStatusResponse,
    SignInRequest,
    SignUpRequest,
    UpgradeToParentResponse,
    UserResponse,
)
from cliqstr.shared.services.auth_service import AuthService
from cliqstr.shared.services.parent_approval_service import ParentApprovalService
from cliqstr.shared.utils.constants import CHOOSE_PLAN_PATH


router = APIRouter()


def set_session_cookie(response: Response, access_token: str, expires_in: int) -> None:
    """Attach the session cookie to a response."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=expires_in,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


@router.post(
    "/sign-up",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sign_up(
    data: SignUpRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register an adult account.

    Raises:
        400: Under the adult minimum age
        409: Email already registered
    """
    user, account, access_token, expires_in = await auth_service.sign_up(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password=data.password,
        birthdate=data.birthdate,
    )
    set_session_cookie(response, access_token, expires_in)

    return AuthResponse(
        user=UserResponse.model_validate(user),
        account=AccountResponse.model_validate(account),
        access_token=access_token,
        expires_in=expires_in,
        redirect_url=CHOOSE_PLAN_PATH,
    )


@router.post(
    "/child-signup",
    response_model=ChildSignupResponse,
    status_code=status.HTTP_201_CREATED,
)
async def child_signup(
    data: ChildSignupRequest,
    approval_service: ParentApprovalService = Depends(get_parent_approval_service),
):
    """
    A child asks a parent for an account.

    No account is created here: the parent receives an approval link and
    creates the child account from Parents HQ.

    Raises:
        400: Parent email belongs to a child account
    """
    approval = await approval_service.create_approval(
        context=ApprovalContext.DIRECT_SIGNUP,
        child_first_name=data.child_first_name,
        child_last_name=data.child_last_name,
        child_birthdate=data.child_birthdate,
        parent_email=data.parent_email,
        child_email=data.child_email,
        parent_mobile=data.parent_mobile,
        second_parent_email=data.second_parent_email,
    )

    message = "We've emailed your parent a link to approve your account."
    if approval.parent_state != ParentState.NEW.value:
        message = "We've emailed your parent. They can approve you by signing in."
    return ChildSignupResponse(parent_state=approval.parent_state, message=message)


@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(
    credentials: SignInRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate by email (or child username) and start a session.

    Raises:
        401: Invalid credentials
        403: Account suspended
    """
    user, account, access_token, expires_in = await auth_service.sign_in(
        credentials.email,
        credentials.password,
    )
    set_session_cookie(response, access_token, expires_in)

    return AuthResponse(
        user=UserResponse.model_validate(user),
        account=AccountResponse.model_validate(account),
        access_token=access_token,
        expires_in=expires_in,
    )


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return MessageResponse(message="Signed out")


@router.get("/status", response_model=SessionStatusResponse)
async def session_status(
    current_user: CurrentUser,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Current user with account and profile summary."""
    account, profile = await auth_service.get_status(current_user)
    return SessionStatusResponse(
        user=UserResponse.model_validate(current_user),
        account=AccountResponse.model_validate(account),
        username=profile.username if profile else None,
    )


@router.post("/upgrade-to-parent", response_model=UpgradeToParentResponse)
async def upgrade_to_parent(
    current_user: CurrentUser,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Turn the caller's Adult account into a Parent account.

    Raises:
        403: Child or Admin account
    """
    account, upgraded = await auth_service.upgrade_to_parent(current_user)
    return UpgradeToParentResponse(
        role=account.role,
        message="Account upgraded to parent" if upgraded else "Already a parent",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# PASSWORDS
# ═══════════════════════════════════════════════════════════════════════════════


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Email a reset link. The reply is the same for unknown addresses."""
    await auth_service.request_password_reset(data.email)
    return MessageResponse(message="If that email has an account, a reset link is on its way.")


@router.get("/validate-reset-token", response_model=ResetTokenStatusResponse)
async def validate_reset_token(
    code: str = Query(..., min_length=1, max_length=128),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Check a reset code before showing the new-password form.

    Raises:
        400: Unknown, used or expired code
    """
    user = await auth_service.validate_reset_token(code)
    return ResetTokenStatusResponse(email=user.email)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Set a new password from a reset code.

    Raises:
        400: Unknown, used or expired code
    """
    await auth_service.reset_password(data.code, data.new_password)
    return MessageResponse(message="Password updated. You can sign in now.")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Change the signed-in user's password.

    Raises:
        400: Wrong current password, weak or unchanged new password
    """
    await auth_service.change_password(current_user, data.current_password, data.new_password)
    return MessageResponse(message="Password changed")
