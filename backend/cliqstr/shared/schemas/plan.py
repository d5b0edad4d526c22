"""
Plan Schemas
"""

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PlanOption(BaseModel):
    key: str
    label: str
    max_members: int
    is_group_plan: bool
    price_monthly_cents: int


class PlanSelectRequest(BaseModel):
    plan: str = Field(min_length=1, max_length=32)
    billing_cycle: Literal["monthly", "annual"] = "monthly"
    approval_token: Optional[str] = None


class PlanSelectResponse(BaseModel):
    plan: str
    setup_stage: str
    joined_cliq_ids: list[UUID]
    redirect_url: str


class PlanSlotsResponse(BaseModel):
    plan: str
    max_members: int
    current_members: int
    available_slots: int
