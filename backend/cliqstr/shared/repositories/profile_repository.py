"""
Profile Repository

Database operations for Profile and ChildSettings.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.profile import ChildSettings, Profile
from cliqstr.shared.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for Profile database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Profile, session)

    async def get_by_user_id(self, user_id: UUID) -> Optional[Profile]:
        result = await self.session.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_user_ids(self, user_ids: list[UUID]) -> dict[UUID, Profile]:
        if not user_ids:
            return {}
        result = await self.session.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
        return {profile.user_id: profile for profile in result.scalars().all()}

    async def username_exists(self, username: str) -> bool:
        result = await self.session.execute(select(Profile.id).where(Profile.username == username))
        return result.first() is not None


class ChildSettingsRepository(BaseRepository[ChildSettings]):
    """Repository for ChildSettings database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ChildSettings, session)

    async def get_for_child(self, child_id: UUID) -> Optional[ChildSettings]:
        """
        Get a child's settings via their profile.

        SQL Generated:
            SELECT child_settings.* FROM child_settings
            JOIN profiles ON profiles.id = child_settings.profile_id
            WHERE profiles.user_id = '...'
        """
        result = await self.session.execute(
            select(ChildSettings)
            .join(Profile, Profile.id == ChildSettings.profile_id)
            .where(Profile.user_id == child_id)
        )
        return result.scalar_one_or_none()

    async def get_for_children(self, child_ids: list[UUID]) -> dict[UUID, ChildSettings]:
        """Settings keyed by child user id."""
        if not child_ids:
            return {}
        result = await self.session.execute(
            select(Profile.user_id, ChildSettings)
            .join(Profile, Profile.id == ChildSettings.profile_id)
            .where(Profile.user_id.in_(child_ids))
        )
        return {user_id: settings for user_id, settings in result.all()}
