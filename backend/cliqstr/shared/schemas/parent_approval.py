"""
Parent Approval Schemas

Request/response models for the approval link flow and the onboarding
state endpoint.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from cliqstr.shared.models.enums import OnboardingStep
from cliqstr.shared.schemas.common import BaseSchema
from cliqstr.shared.schemas.user import AccountResponse, UserResponse


class ApprovalSummary(BaseSchema):
    """What a parent sees about an approval request."""

    id: UUID
    status: str
    context: str
    parent_state: str
    parent_email: str
    child_first_name: str
    child_last_name: str
    child_birthdate: date
    cliq_name: Optional[str] = None
    inviter_name: Optional[str] = None
    expires_at: datetime
    completed_at: Optional[datetime] = None


class OnboardingStateResponse(BaseModel):
    """
    Single server-computed onboarding state for an approval token.

    The web app redirects to `redirect_url`; the remaining fields are the
    facts the step was derived from.
    """

    step: OnboardingStep
    redirect_url: str
    approval: Optional[ApprovalSummary] = None
    parent_account_exists: bool = False
    parent_role: Optional[str] = None
    has_plan: bool = False
    signed_in_as_parent: bool = False


class ParentSignupRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    birthdate: date
    approval_token: str = Field(min_length=1)


class ParentSignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    approval_token: str = Field(min_length=1)


class ApprovalTokenRequest(BaseModel):
    approval_token: str = Field(min_length=1)


class ResendApprovalLinkRequest(BaseModel):
    email: EmailStr


class ParentAuthResponse(BaseModel):
    """Session plus where to go next."""

    user: UserResponse
    account: AccountResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    approval: ApprovalSummary
    redirect_url: str


class ResumeResponse(BaseModel):
    approval_id: UUID
    redirect_url: str
