"""
User Schemas

Request/response models for sign-up, sign-in and session endpoints.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from cliqstr.shared.schemas.common import BaseSchema


class SignUpRequest(BaseModel):
    """Adult self-service sign-up."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(
        min_length=8,
        description="Password (minimum 8 characters)",
    )
    birthdate: date


class ChildSignupRequest(BaseModel):
    """A child asking to join; the parent receives the approval link."""

    child_first_name: str = Field(min_length=1, max_length=100)
    child_last_name: str = Field(min_length=1, max_length=100)
    child_birthdate: date
    parent_email: EmailStr
    child_email: Optional[EmailStr] = None
    parent_mobile: Optional[str] = Field(default=None, max_length=32)
    second_parent_email: Optional[EmailStr] = None


class SignInRequest(BaseModel):
    email: str = Field(
        min_length=1,
        max_length=255,
        description="Email address, or username for child accounts",
    )
    password: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Code from the reset email plus the new password."""

    code: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(
        min_length=8,
        description="At least one lowercase letter, one uppercase letter and one number",
    )


class ResetTokenStatusResponse(BaseModel):
    valid: bool = True
    email: str


class UserResponse(BaseSchema):
    """Schema for user response."""

    id: UUID
    email: str
    is_verified: bool
    created_at: datetime


class AccountResponse(BaseSchema):
    """Role and onboarding state. Name fields are only returned to the owner."""

    role: str
    is_approved: bool
    plan: Optional[str] = None
    setup_stage: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AuthResponse(BaseModel):
    """Schema for authentication response."""

    user: UserResponse
    account: AccountResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    redirect_url: Optional[str] = None


class SessionStatusResponse(BaseModel):
    """Who is signed in."""

    user: UserResponse
    account: AccountResponse
    username: Optional[str] = None


class ChildSignupResponse(BaseModel):
    approval_created: bool = True
    parent_state: str
    message: str


class UpgradeToParentResponse(BaseModel):
    ok: bool = True
    role: str
    message: str
