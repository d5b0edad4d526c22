"""
Event Service

Cliq calendar events, RSVPs and parent approval of events created by
children.

Visibility:
===========
    event by adult                               → every member
    event by child, settings need no approval    → every member
    event by child, waiting for a parent         → the creator only
                                                   (and the child's parents
                                                   through pending-events)

Deleting:
=========
    creator, cliq Owner or Moderator, the creator's parents, Admins
    → soft delete (deleted_at set, RSVPs kept)
"""

from collections import Counter
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.core.exceptions import (
    AuthorizationError,
    CliqNotFoundError,
    EventNotFoundError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.enums import AccountRole, AuditAction, MembershipRole, RsvpStatus
from cliqstr.shared.models.event import Event, EventRsvp
from cliqstr.shared.models.user import User
from cliqstr.shared.repositories import (
    AccountRepository,
    ChildSettingsRepository,
    CliqRepository,
    EventRepository,
    EventRsvpRepository,
    MembershipRepository,
    ParentAuditLogRepository,
    ParentLinkRepository,
)
from cliqstr.shared.schemas.event import EventCreateRequest

logger = get_logger("cliqstr.events")


class EventService:
    """
    Service for cliq events.

    Attributes:
        session: Database session
        repo: EventRepository instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = EventRepository(session)
        self.rsvps = EventRsvpRepository(session)
        self.cliqs = CliqRepository(session)
        self.memberships = MembershipRepository(session)
        self.accounts = AccountRepository(session)
        self.child_settings = ChildSettingsRepository(session)
        self.links = ParentLinkRepository(session)
        self.audit = ParentAuditLogRepository(session)

    async def _require_member(self, user: User, cliq_id: UUID) -> None:
        if await self.cliqs.get_active(cliq_id) is None:
            raise CliqNotFoundError(str(cliq_id))
        if await self.memberships.get_membership(user.id, cliq_id) is None:
            raise AuthorizationError("You are not a member of this cliq")

    # ═══════════════════════════════════════════════════════════════════════════
    # EVENTS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_event(self, user: User, cliq_id: UUID, data: EventCreateRequest) -> Event:
        """
        Create an event in a cliq.

        Raises:
            AuthorizationError: Not a member, or a child not allowed to create events
        """
        await self._require_member(user, cliq_id)

        requires_approval = False
        account = await self.accounts.get_by_user_id(user.id)
        if account is not None and account.role == AccountRole.CHILD.value:
            settings_row = await self.child_settings.get_for_child(user.id)
            if settings_row is not None and not settings_row.can_create_events:
                raise AuthorizationError(
                    "Your parent has not allowed you to create events",
                    error_code="EVENT_NOT_PERMITTED",
                )
            requires_approval = settings_row is None or settings_row.events_require_approval

        event = await self.repo.create(
            cliq_id=cliq_id,
            created_by_id=user.id,
            title=data.title.strip(),
            description=data.description,
            location=data.location,
            starts_at=data.starts_at,
            ends_at=data.ends_at,
            requires_parent_approval=requires_approval,
        )
        logger.info(
            "event_created",
            event_id=str(event.id),
            cliq_id=str(cliq_id),
            requires_parent_approval=requires_approval,
        )
        return event

    async def list_events(self, user: User, cliq_id: UUID) -> list[dict[str, Any]]:
        """Events of a cliq with RSVP counts and the caller's own answer."""
        await self._require_member(user, cliq_id)

        events = [
            event
            for event in await self.repo.list_for_cliq(cliq_id)
            if not event.is_pending_approval or event.created_by_id == user.id
        ]
        rsvps = await self.rsvps.list_for_events([event.id for event in events])

        counts: dict[UUID, Counter] = {event.id: Counter() for event in events}
        mine: dict[UUID, str] = {}
        for rsvp in rsvps:
            counts[rsvp.event_id][rsvp.status] += 1
            if rsvp.user_id == user.id:
                mine[rsvp.event_id] = rsvp.status

        return [
            {
                "event": event,
                "rsvps": {status.value: counts[event.id][status.value] for status in RsvpStatus},
                "my_rsvp": mine.get(event.id),
            }
            for event in events
        ]

    async def rsvp(self, user: User, event_id: UUID, status: RsvpStatus) -> EventRsvp:
        """
        Record or change the caller's answer.

        Raises:
            EventNotFoundError: Event missing, deleted, or hidden from the caller
        """
        event = await self.repo.get_active(event_id)
        if event is None or (event.is_pending_approval and event.created_by_id != user.id):
            raise EventNotFoundError(str(event_id))
        await self._require_member(user, event.cliq_id)

        existing = await self.rsvps.get_rsvp(event.id, user.id)
        if existing is None:
            return await self.rsvps.create(event_id=event.id, user_id=user.id, status=status.value)
        existing.status = status.value
        return await self.rsvps.save(existing)

    async def delete_event(self, user: User, event_id: UUID) -> None:
        """
        Soft delete an event.

        Allowed for the creator, the cliq's Owner or Moderators, the
        creator's parents and Admins.

        Raises:
            EventNotFoundError: Event missing, deleted, or hidden from the caller
            AuthorizationError: Caller is none of the above
        """
        event = await self.repo.get_active(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))

        if not await self._may_delete(user, event):
            if event.is_pending_approval:
                raise EventNotFoundError(str(event_id))
            raise AuthorizationError("Only the creator or a cliq moderator can delete this event")

        await self.repo.soft_delete(event.id)
        logger.info("event_deleted", event_id=str(event_id), deleted_by=str(user.id))

    async def _may_delete(self, user: User, event: Event) -> bool:
        if event.created_by_id == user.id:
            return True
        membership = await self.memberships.get_membership(user.id, event.cliq_id)
        if membership is not None and membership.role in (
            MembershipRole.OWNER.value,
            MembershipRole.MODERATOR.value,
        ):
            return True
        if await self.links.get_link(user.id, user.email, event.created_by_id) is not None:
            return True
        account = await self.accounts.get_by_user_id(user.id)
        return account is not None and account.role == AccountRole.ADMIN.value

    # ═══════════════════════════════════════════════════════════════════════════
    # PARENT APPROVAL
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_pending_for_parent(self, parent: User) -> list[Event]:
        links = await self.links.list_for_parent(parent.id, parent.email)
        return await self.repo.list_pending_by_creators([link.child_id for link in links])

    async def _pending_for_parent(self, parent: User, event_id: UUID) -> Event:
        event = await self.repo.get_active(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        if await self.links.get_link(parent.id, parent.email, event.created_by_id) is None:
            raise AuthorizationError("Only the creator's parents can decide on this event")
        if not event.is_pending_approval:
            raise ValidationError("This event is not waiting for approval", error_code="EVENT_NOT_PENDING")
        return event

    async def approve(
        self,
        parent: User,
        event_id: UUID,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Event:
        """
        Approve a child's event, making it visible to the cliq.

        Raises:
            EventNotFoundError: Unknown event
            AuthorizationError: Caller is not linked to the creator
            ValidationError: Event not pending
        """
        event = await self._pending_for_parent(parent, event_id)
        event.approved_by_id = parent.id
        event.approved_at = utc_now()
        await self.repo.save(event)

        await self.audit.create(
            parent_id=parent.id,
            child_id=event.created_by_id,
            action=AuditAction.APPROVE_EVENT.value,
            new_value={"event_id": str(event.id), "title": event.title},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("event_approved", event_id=str(event.id), parent_id=str(parent.id))
        return event

    async def reject(
        self,
        parent: User,
        event_id: UUID,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Reject a child's event. The event is soft deleted."""
        event = await self._pending_for_parent(parent, event_id)
        child_id, title = event.created_by_id, event.title
        await self.repo.soft_delete(event.id)

        await self.audit.create(
            parent_id=parent.id,
            child_id=child_id,
            action=AuditAction.REJECT_EVENT.value,
            old_value={"event_id": str(event_id), "title": title},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("event_rejected", event_id=str(event_id), parent_id=str(parent.id))
