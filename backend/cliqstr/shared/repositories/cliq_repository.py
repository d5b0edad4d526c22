"""
Cliq Repository

Database operations for Cliq, Membership and CliqNotice.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.cliq import Cliq, CliqNotice, Membership
from cliqstr.shared.models.enums import MembershipRole
from cliqstr.shared.repositories.base import BaseRepository


class CliqRepository(BaseRepository[Cliq]):
    """Repository for Cliq database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Cliq, session)

    async def get_active(self, cliq_id: UUID) -> Optional[Cliq]:
        """Get a cliq unless it has been soft deleted."""
        result = await self.session.execute(
            select(Cliq).where(Cliq.id == cliq_id, Cliq.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def list_for_member(self, user_id: UUID) -> list[Cliq]:
        result = await self.session.execute(
            select(Cliq)
            .join(Membership, Membership.cliq_id == Cliq.id)
            .where(Membership.user_id == user_id, Cliq.deleted_at.is_(None))
            .order_by(Cliq.created_at.desc())
        )
        return list(result.scalars().all())


class MembershipRepository(BaseRepository[Membership]):
    """Repository for Membership database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Membership, session)

    async def get_membership(self, user_id: UUID, cliq_id: UUID) -> Optional[Membership]:
        result = await self.session.execute(
            select(Membership).where(Membership.user_id == user_id, Membership.cliq_id == cliq_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        user_id: UUID,
        cliq_id: UUID,
        role: str = MembershipRole.MEMBER.value,
    ) -> tuple[Membership, bool]:
        """Returns (membership, created). Existing memberships keep their role."""
        membership = await self.get_membership(user_id, cliq_id)
        if membership is not None:
            return membership, False
        return await self.create(user_id=user_id, cliq_id=cliq_id, role=role), True

    async def list_by_cliq(self, cliq_id: UUID) -> list[Membership]:
        result = await self.session.execute(
            select(Membership).where(Membership.cliq_id == cliq_id).order_by(Membership.created_at)
        )
        return list(result.scalars().all())

    async def list_cliq_ids_for_user(self, user_id: UUID) -> set[UUID]:
        result = await self.session.execute(
            select(Membership.cliq_id).where(Membership.user_id == user_id)
        )
        return set(result.scalars().all())

    async def list_cliq_ids_for_users(self, user_ids: list[UUID]) -> set[UUID]:
        if not user_ids:
            return set()
        result = await self.session.execute(
            select(Membership.cliq_id).where(Membership.user_id.in_(user_ids))
        )
        return set(result.scalars().all())


class CliqNoticeRepository(BaseRepository[CliqNotice]):
    """Repository for CliqNotice database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(CliqNotice, session)

    async def list_active(self, cliq_id: UUID, now: datetime) -> list[CliqNotice]:
        """Notices without an expiry or expiring in the future, newest first."""
        result = await self.session.execute(
            select(CliqNotice)
            .where(
                CliqNotice.cliq_id == cliq_id,
                or_(CliqNotice.expires_at.is_(None), CliqNotice.expires_at > now),
            )
            .order_by(CliqNotice.created_at.desc())
        )
        return list(result.scalars().all())
