"""
Plan Handler

Plan catalog, plan selection and member slots.
"""

from fastapi import APIRouter, Depends

from cliqstr.api.dependencies import CurrentUser
from cliqstr.api.dependencies.services import get_plan_service
from cliqstr.shared.schemas.plan import (
    PlanOption,
    PlanSelectRequest,
    PlanSelectResponse,
    PlanSlotsResponse,
)
from cliqstr.shared.services.plan_service import PlanService, enabled_plans


router = APIRouter()


@router.get("", response_model=list[PlanOption])
async def list_plans():
    """Plans that can currently be selected."""
    return [
        PlanOption(
            key=plan.key,
            label=plan.label,
            max_members=plan.max_members,
            is_group_plan=plan.is_group_plan,
            price_monthly_cents=plan.price_monthly_cents,
        )
        for plan in enabled_plans()
    ]


@router.post("/select", response_model=PlanSelectResponse)
async def select_plan(
    data: PlanSelectRequest,
    current_user: CurrentUser,
    plan_service: PlanService = Depends(get_plan_service),
):
    """
    Choose a plan, then join every cliq the caller has a pending invite to.

    Raises:
        400: Plan not available, or approval token unusable
        403: Child account, or approval addressed to someone else
    """
    return await plan_service.select_plan(
        current_user,
        data.plan,
        billing_cycle=data.billing_cycle,
        approval_token=data.approval_token,
    )


@router.get("/slots", response_model=PlanSlotsResponse)
async def plan_slots(
    current_user: CurrentUser,
    plan_service: PlanService = Depends(get_plan_service),
):
    """Member slots left on the caller's plan."""
    plan = await plan_service.get_slots(current_user)
    return PlanSlotsResponse(
        plan=plan.plan_key,
        max_members=plan.max_members,
        current_members=plan.current_members,
        available_slots=plan.available_slots,
    )
