"""
Red Alert Schemas
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from cliqstr.shared.schemas.common import BaseSchema


class TimeRange(BaseModel):
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def check_order(self) -> "TimeRange":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class ContentToSuspend(BaseModel):
    """Filters whose union selects the posts to hide."""

    post_ids: list[UUID] = Field(default_factory=list)
    user_id: Optional[UUID] = None
    time_range: Optional[TimeRange] = None


class RedAlertCreateRequest(BaseModel):
    cliq_id: UUID
    reason: str = Field(min_length=1, max_length=2000)
    post_id: Optional[UUID] = None
    content_to_suspend: ContentToSuspend = Field(default_factory=ContentToSuspend)


class RedAlertCreateResponse(BaseModel):
    success: bool = True
    red_alert_id: UUID
    trigger_type: str
    suspended_content: int
    notified: int
    total_parents: int
    moderator_notified: bool


class RedAlertResponse(BaseSchema):
    id: UUID
    cliq_id: UUID
    post_id: Optional[UUID] = None
    triggered_by_id: Optional[UUID] = None
    trigger_type: str
    reason: str
    status: str
    suspended_content_count: int
    moderator_notes: Optional[str] = None
    reviewed_by_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime


class RedAlertReviewRequest(BaseModel):
    status: Literal["reviewed", "resolved", "dismissed"]
    moderator_notes: Optional[str] = Field(default=None, max_length=2000)
