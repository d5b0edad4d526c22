"""
Pydantic Schemas

Request and response models for the API.

Schema Categories:
==================
- common: Base schemas, pagination, error responses
- user: Sign-up, sign-in, session and password schemas
- invite: Invite creation, validation and acceptance
- parent_approval: Approval links and the onboarding state
- plan: Plan catalog and selection
- parent: Parents HQ (children, settings, parent links, logs)
- red_alert: Red Alert reports and review
- cliq: Cliqs, posts and notices
- event: Events and RSVPs

Usage:
======
    from cliqstr.shared.schemas.user import SignUpRequest, AuthResponse
    from cliqstr.shared.schemas.common import MessageResponse, ErrorResponse
"""

from cliqstr.shared.schemas.common import (
    BaseSchema,
    PaginationParams,
    MessageResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
)
from cliqstr.shared.schemas.user import (
    SignUpRequest,
    ChildSignupRequest,
    SignInRequest,
    UserResponse,
    AccountResponse,
    AuthResponse,
    SessionStatusResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
)
from cliqstr.shared.schemas.parent_approval import (
    ApprovalSummary,
    OnboardingStateResponse,
)

__all__ = [
    # Common
    "BaseSchema",
    "PaginationParams",
    "MessageResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    # User
    "SignUpRequest",
    "ChildSignupRequest",
    "SignInRequest",
    "UserResponse",
    "AccountResponse",
    "AuthResponse",
    "SessionStatusResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    # Parent approval
    "ApprovalSummary",
    "OnboardingStateResponse",
]
