"""
Activity Log Repository

Database operations for UserActivityLog.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.activity_log import UserActivityLog
from cliqstr.shared.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[UserActivityLog]):
    """Repository for UserActivityLog database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(UserActivityLog, session)

    async def record(
        self,
        user_id: UUID,
        event: str,
        detail: Optional[dict[str, Any]] = None,
    ) -> UserActivityLog:
        return await self.create(user_id=user_id, event=event, detail=detail)

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> list[UserActivityLog]:
        result = await self.session.execute(
            select(UserActivityLog)
            .where(UserActivityLog.user_id == user_id)
            .order_by(UserActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
