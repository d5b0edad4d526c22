"""
Invite Repository

Database operations for Invite.

Common Operations:
==================
- get_by_join_code()            → Resolve the code from an invite link
- list_pending_adult_for_email() → Invites that auto-join after plan selection
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.enums import InviteStatus, InviteType
from cliqstr.shared.models.invite import Invite
from cliqstr.shared.repositories.base import BaseRepository


class InviteRepository(BaseRepository[Invite]):
    """Repository for Invite database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Invite, session)

    async def get_by_join_code(self, code: str) -> Optional[Invite]:
        """Look up an invite by join code, falling back to the long token."""
        result = await self.session.execute(
            select(Invite).where(or_(Invite.join_code == code, Invite.token == code))
        )
        return result.scalars().first()

    async def join_code_exists(self, code: str) -> bool:
        result = await self.session.execute(select(Invite.id).where(Invite.join_code == code))
        return result.first() is not None

    async def list_pending_adult_for_email(self, email: str, now: datetime) -> list[Invite]:
        """
        Adult invites still waiting on this address, oldest first.

        Includes invites already accepted by a user who had no plan yet.

        SQL Generated:
            SELECT * FROM invites
            WHERE target_email_normalized = 'friend@example.com'
              AND invite_type = 'adult' AND used = false
              AND status IN ('pending', 'accepted')
              AND (expires_at IS NULL OR expires_at > now)
        """
        result = await self.session.execute(
            select(Invite)
            .where(
                Invite.target_email_normalized == email,
                Invite.invite_type == InviteType.ADULT.value,
                Invite.used.is_(False),
                Invite.status.in_([InviteStatus.PENDING.value, InviteStatus.ACCEPTED.value]),
                or_(Invite.expires_at.is_(None), Invite.expires_at > now),
            )
            .order_by(Invite.created_at)
        )
        return list(result.scalars().all())
