"""
Event Handler

RSVPs to cliq events and deleting them. Events are created and listed
under /cliqs/{cliq_id}/events.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from cliqstr.api.dependencies import CurrentUser
from cliqstr.api.dependencies.services import get_event_service
from cliqstr.shared.schemas.event import RsvpRequest, RsvpResponse
from cliqstr.shared.services.event_service import EventService


router = APIRouter()


@router.post("/{event_id}/rsvp", response_model=RsvpResponse)
async def rsvp(
    event_id: UUID,
    data: RsvpRequest,
    current_user: CurrentUser,
    event_service: EventService = Depends(get_event_service),
):
    """Answer going, maybe or raincheck. Answering again replaces the answer."""
    answer = await event_service.rsvp(current_user, event_id, data.status)
    return RsvpResponse(event_id=answer.event_id, status=answer.status)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    current_user: CurrentUser,
    event_service: EventService = Depends(get_event_service),
):
    """
    Delete an event. It disappears from the calendar; the row is kept.

    Raises:
        403: Caller is not the creator, a cliq moderator, a parent of the creator or an admin
        404: Unknown or already deleted event
    """
    await event_service.delete_event(current_user, event_id)
    return None
