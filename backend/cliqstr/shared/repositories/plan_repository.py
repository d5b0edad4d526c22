"""
Plan Repository

Database operations for Plan and PlanMembership.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.functions import count as sql_count

from cliqstr.shared.models.enums import PlanMemberStatus
from cliqstr.shared.models.plan import Plan, PlanMembership
from cliqstr.shared.repositories.base import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    """Repository for Plan database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Plan, session)

    async def get_by_owner(self, owner_id: UUID) -> Optional[Plan]:
        result = await self.session.execute(select(Plan).where(Plan.owner_id == owner_id))
        return result.scalar_one_or_none()


class PlanMembershipRepository(BaseRepository[PlanMembership]):
    """Repository for PlanMembership database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(PlanMembership, session)

    async def get_membership(self, plan_id: UUID, user_id: UUID) -> Optional[PlanMembership]:
        result = await self.session.execute(
            select(PlanMembership).where(
                PlanMembership.plan_id == plan_id,
                PlanMembership.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def count_active(self, plan_id: UUID) -> int:
        result = await self.session.execute(
            select(sql_count())
            .select_from(PlanMembership)
            .where(
                PlanMembership.plan_id == plan_id,
                PlanMembership.status == PlanMemberStatus.ACTIVE.value,
            )
        )
        return result.scalar() or 0
