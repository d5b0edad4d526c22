"""
Invite Schemas

Request/response models for invite creation, validation and acceptance.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from cliqstr.shared.models.enums import InviteType, TargetState
from cliqstr.shared.schemas.common import BaseSchema


class InviteCreateRequest(BaseModel):
    """
    Invite someone to a cliq.

    Adult invites need `invitee_email`; child invites go to `parent_email`
    and carry the child's name and birthdate.
    """

    cliq_id: UUID
    invite_type: InviteType
    invitee_email: Optional[EmailStr] = None
    parent_email: Optional[EmailStr] = None
    friend_first_name: Optional[str] = Field(default=None, max_length=100)
    friend_last_name: Optional[str] = Field(default=None, max_length=100)
    child_birthdate: Optional[date] = None
    invite_note: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_target_email(self) -> "InviteCreateRequest":
        if self.invite_type == InviteType.CHILD and not self.parent_email:
            raise ValueError("parent_email is required for child invites")
        if self.invite_type == InviteType.ADULT and not self.invitee_email:
            raise ValueError("invitee_email is required for adult invites")
        return self

    @property
    def target_email(self) -> str:
        return str(self.parent_email if self.invite_type == InviteType.CHILD else self.invitee_email)


class InviteCreateResponse(BaseModel):
    ok: bool = True
    invite_id: UUID
    join_code: str
    target_state: TargetState
    approval_id: Optional[UUID] = None


class InviteValidationResponse(BaseModel):
    """Details shown on the invite landing page."""

    valid: bool = True
    invite_type: str
    cliq_id: UUID
    cliq_name: Optional[str] = None
    inviter_name: Optional[str] = None
    recipient_email: str
    expires_at: Optional[datetime] = None


class InviteCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=128)


class InviteDeclineRequest(InviteCodeRequest):
    reason: Optional[str] = Field(default=None, max_length=500)


class InviteAcceptResponse(BaseModel):
    status: str
    cliq_id: UUID
    joined: bool
    requires_plan: bool
    redirect_url: str


class PendingInviteResponse(BaseSchema):
    id: UUID
    join_code: str
    cliq_id: UUID
    invite_type: str
    status: str
    invite_note: Optional[str] = None
    created_at: datetime
