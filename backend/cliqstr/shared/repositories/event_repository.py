"""
Event Repository

Database operations for Event and EventRsvp.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.event import Event, EventRsvp
from cliqstr.shared.repositories.base import BaseRepository


class EventRepository(BaseRepository[Event]):
    """Repository for Event database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Event, session)

    async def get_active(self, event_id: UUID) -> Optional[Event]:
        result = await self.session.execute(
            select(Event).where(Event.id == event_id, Event.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def list_for_cliq(self, cliq_id: UUID) -> list[Event]:
        result = await self.session.execute(
            select(Event)
            .where(Event.cliq_id == cliq_id, Event.deleted_at.is_(None))
            .order_by(Event.starts_at)
        )
        return list(result.scalars().all())

    async def list_pending_by_creators(self, creator_ids: list[UUID]) -> list[Event]:
        """Events by these users still waiting for a parent decision."""
        if not creator_ids:
            return []
        result = await self.session.execute(
            select(Event)
            .where(
                Event.created_by_id.in_(creator_ids),
                Event.requires_parent_approval.is_(True),
                Event.approved_at.is_(None),
                Event.deleted_at.is_(None),
            )
            .order_by(Event.starts_at)
        )
        return list(result.scalars().all())


class EventRsvpRepository(BaseRepository[EventRsvp]):
    """Repository for EventRsvp database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(EventRsvp, session)

    async def get_rsvp(self, event_id: UUID, user_id: UUID) -> Optional[EventRsvp]:
        result = await self.session.execute(
            select(EventRsvp).where(EventRsvp.event_id == event_id, EventRsvp.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_for_events(self, event_ids: list[UUID]) -> list[EventRsvp]:
        if not event_ids:
            return []
        result = await self.session.execute(select(EventRsvp).where(EventRsvp.event_id.in_(event_ids)))
        return list(result.scalars().all())
