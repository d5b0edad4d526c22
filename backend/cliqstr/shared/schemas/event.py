"""
Event Schemas
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from cliqstr.shared.models.enums import RsvpStatus
from cliqstr.shared.schemas.common import BaseSchema


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    location: Optional[str] = Field(default=None, max_length=300)
    starts_at: datetime
    ends_at: datetime

    @model_validator(mode="after")
    def check_times(self) -> "EventCreateRequest":
        if self.ends_at < self.starts_at:
            raise ValueError("ends_at must not be before starts_at")
        return self


class RsvpCounts(BaseModel):
    going: int = 0
    maybe: int = 0
    raincheck: int = 0


class EventResponse(BaseSchema):
    id: UUID
    cliq_id: UUID
    created_by_id: UUID
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    requires_parent_approval: bool
    approved_at: Optional[datetime] = None
    is_pending_approval: bool
    created_at: datetime


class EventWithRsvps(EventResponse):
    rsvps: RsvpCounts = Field(default_factory=RsvpCounts)
    my_rsvp: Optional[str] = None


class RsvpRequest(BaseModel):
    status: RsvpStatus


class RsvpResponse(BaseModel):
    event_id: UUID
    status: str
