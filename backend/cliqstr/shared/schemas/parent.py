"""
Parents HQ Schemas

Request/response models for child creation, child settings, parent links
and activity logs.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from cliqstr.shared.models.enums import AiModerationLevel, ParentLinkRole
from cliqstr.shared.schemas.common import BaseSchema


class ChildPermissions(BaseModel):
    """
    Permission overrides a parent may set at creation or later.

    Omitted fields keep their current value (or the safe default for a
    new child).
    """

    can_send_invites: Optional[bool] = None
    can_invite_children: Optional[bool] = None
    can_invite_adults: Optional[bool] = None
    invite_requires_approval: Optional[bool] = None
    can_create_public_cliqs: Optional[bool] = None
    can_create_private_cliqs: Optional[bool] = None
    can_create_semi_private_cliqs: Optional[bool] = None
    can_join_public_cliqs: Optional[bool] = None
    can_create_events: Optional[bool] = None
    events_require_approval: Optional[bool] = None
    can_share_youtube: Optional[bool] = None
    is_silently_monitored: Optional[bool] = None
    receive_ai_alerts: Optional[bool] = None
    ai_moderation_level: Optional[AiModerationLevel] = None
    visibility_level: Optional[str] = Field(default=None, max_length=16)

    def as_updates(self) -> dict[str, Any]:
        updates = self.model_dump(exclude_none=True)
        if "ai_moderation_level" in updates:
            updates["ai_moderation_level"] = self.ai_moderation_level.value
        return updates


class CreateChildRequest(BaseModel):
    """
    Parents HQ child creation.

    Exactly one of `approval_token` or `invite_code` authorizes it.
    """

    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.\-]+$")
    password: str = Field(min_length=6)
    child_email: Optional[EmailStr] = None
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    birthdate: date
    permissions: ChildPermissions = Field(default_factory=ChildPermissions)
    red_alert_accepted: bool
    silent_monitoring: bool = True
    second_parent_email: Optional[EmailStr] = None
    approval_token: Optional[str] = None
    invite_code: Optional[str] = None

    @model_validator(mode="after")
    def check_authorization_source(self) -> "CreateChildRequest":
        if bool(self.approval_token) == bool(self.invite_code):
            raise ValueError("Provide exactly one of approval_token or invite_code")
        return self


class CreateChildResponse(BaseModel):
    ok: bool = True
    child_id: UUID
    username: str
    joined_cliq_id: Optional[UUID] = None
    redirect_url: str


class ChildSettingsResponse(BaseSchema):
    can_send_invites: bool
    can_invite_children: bool
    can_invite_adults: bool
    invite_requires_approval: bool
    can_create_public_cliqs: bool
    can_create_private_cliqs: bool
    can_create_semi_private_cliqs: bool
    can_join_public_cliqs: bool
    can_create_events: bool
    events_require_approval: bool
    can_share_youtube: bool
    is_silently_monitored: bool
    receive_ai_alerts: bool
    ai_moderation_level: str
    visibility_level: str


class ChildSummary(BaseModel):
    """One child in the Parents HQ list."""

    id: UUID
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birthdate: Optional[date] = None
    role: str
    link_role: str
    settings: Optional[ChildSettingsResponse] = None


class UpdateChildSettingsRequest(BaseModel):
    child_id: UUID
    settings: ChildPermissions


class ParentLinkResponse(BaseSchema):
    id: UUID
    parent_id: Optional[UUID] = None
    email: str
    type: str
    role: str
    permissions: dict[str, Any]
    created_at: datetime


class AddParentRequest(BaseModel):
    child_id: UUID
    email: EmailStr
    role: ParentLinkRole = ParentLinkRole.SECONDARY

    @model_validator(mode="after")
    def check_role(self) -> "AddParentRequest":
        if self.role == ParentLinkRole.PRIMARY:
            raise ValueError("role must be secondary or guardian")
        return self


class RemoveParentRequest(BaseModel):
    child_id: UUID
    link_id: UUID


class ActivityLogEntry(BaseModel):
    """Merged audit and activity log line."""

    source: str  # "audit" | "activity"
    action: str
    detail: Optional[dict[str, Any]] = None
    actor_id: Optional[UUID] = None
    created_at: datetime


class ActivityLogResponse(BaseModel):
    child_id: UUID
    entries: list[ActivityLogEntry]
