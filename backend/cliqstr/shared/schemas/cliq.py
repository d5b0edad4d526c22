"""
Cliq Schemas

Cliqs, memberships, posts and notices.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from cliqstr.shared.models.enums import CliqPrivacy, MemberAction
from cliqstr.shared.schemas.common import BaseSchema
from cliqstr.shared.utils.constants import NOTICE_MAX_LENGTH


# ═══════════════════════════════════════════════════════════════════════════════
# CLIQS
# ═══════════════════════════════════════════════════════════════════════════════


class CliqCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    privacy: CliqPrivacy = CliqPrivacy.PRIVATE
    min_age: Optional[int] = Field(default=None, ge=0, le=120)
    max_age: Optional[int] = Field(default=None, ge=0, le=120)

    @model_validator(mode="after")
    def check_age_range(self) -> "CliqCreateRequest":
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("min_age must not exceed max_age")
        return self


class CliqResponse(BaseSchema):
    id: UUID
    name: str
    description: Optional[str] = None
    owner_id: UUID
    privacy: str
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    created_at: datetime


class MemberResponse(BaseModel):
    user_id: UUID
    username: Optional[str] = None
    role: str
    joined_at: datetime


class MemberActionRequest(BaseModel):
    target_user_id: UUID
    action: MemberAction


# ═══════════════════════════════════════════════════════════════════════════════
# POSTS
# ═══════════════════════════════════════════════════════════════════════════════


class PostCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class PostResponse(BaseSchema):
    id: UUID
    cliq_id: UUID
    author_id: UUID
    content: str
    moderation_status: str
    created_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# NOTICES
# ═══════════════════════════════════════════════════════════════════════════════


class NoticeCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=NOTICE_MAX_LENGTH)
    expires_at: Optional[datetime] = None


class NoticeResponse(BaseSchema):
    id: UUID
    cliq_id: UUID
    type: str
    content: str
    created_by_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
