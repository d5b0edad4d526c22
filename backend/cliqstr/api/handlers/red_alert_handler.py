"""
Red Alert Handler

Raise, list and review Red Alerts.

A Red Alert hides the reported content straight away and emails every
parent of a child in the cliq; moderators review it afterwards.
"""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from cliqstr.api.dependencies import CurrentUser
from cliqstr.api.dependencies.services import get_red_alert_service
from cliqstr.shared.schemas.red_alert import (
    RedAlertCreateRequest,
    RedAlertCreateResponse,
    RedAlertResponse,
    RedAlertReviewRequest,
)
from cliqstr.shared.services.red_alert_service import RedAlertService


router = APIRouter()


@router.post(
    "",
    response_model=RedAlertCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def raise_red_alert(
    data: RedAlertCreateRequest,
    current_user: CurrentUser,
    red_alert_service: RedAlertService = Depends(get_red_alert_service),
):
    """
    Raise a Red Alert in a cliq.

    Raises:
        403: Caller is not a member of the cliq
        404: Cliq (or post) not found
    """
    return await red_alert_service.create_alert(
        cliq_id=data.cliq_id,
        reason=data.reason,
        reporter=current_user,
        post_id=data.post_id,
        content=data.content_to_suspend,
    )


@router.get("", response_model=list[RedAlertResponse])
async def list_red_alerts(
    current_user: CurrentUser,
    cliq_id: UUID = Query(...),
    alert_status: Optional[Literal["pending", "reviewed", "resolved", "dismissed"]] = Query(
        None, alias="status"
    ),
    red_alert_service: RedAlertService = Depends(get_red_alert_service),
):
    """Alerts for a cliq, newest first. Cliq owner or Admin only."""
    alerts = await red_alert_service.list_alerts(current_user, cliq_id, alert_status)
    return [RedAlertResponse.model_validate(alert) for alert in alerts]


@router.patch("/{alert_id}", response_model=RedAlertResponse)
async def review_red_alert(
    alert_id: UUID,
    data: RedAlertReviewRequest,
    current_user: CurrentUser,
    red_alert_service: RedAlertService = Depends(get_red_alert_service),
):
    """
    Admin review. Dismissing an alert restores the posts it hid.

    Raises:
        403: Caller is not an Admin
        404: Alert not found
    """
    alert = await red_alert_service.review(
        current_user,
        alert_id,
        data.status,
        data.moderator_notes,
    )
    return RedAlertResponse.model_validate(alert)
