"""
Post Repository

Database operations for Post and RedAlert.

Suspension Queries:
===================
A Red Alert can target posts three ways. Each selector below returns ids
only, so the service can take the union and suspend each post once:

    ids_in_cliq(post_ids)          ← explicit posts, restricted to the cliq
    ids_by_author(cliq, user)      ← every post by one user in the cliq
    ids_in_range(cliq, start, end) ← every post created inside a time window
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.enums import ModerationStatus
from cliqstr.shared.models.post import Post, RedAlert
from cliqstr.shared.repositories.base import BaseRepository


class PostRepository(BaseRepository[Post]):
    """Repository for Post database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Post, session)

    async def list_visible(self, cliq_id: UUID, *, offset: int = 0, limit: int = 50) -> list[Post]:
        """Approved, non-deleted posts of a cliq, newest first."""
        result = await self.session.execute(
            select(Post)
            .where(
                Post.cliq_id == cliq_id,
                Post.deleted_at.is_(None),
                Post.moderation_status == ModerationStatus.APPROVED.value,
            )
            .order_by(Post.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    # ═══════════════════════════════════════════════════════════════════════════
    # SUSPENSION SELECTORS
    # ═══════════════════════════════════════════════════════════════════════════

    async def ids_in_cliq(self, cliq_id: UUID, post_ids: list[UUID]) -> set[UUID]:
        if not post_ids:
            return set()
        result = await self.session.execute(
            select(Post.id).where(Post.cliq_id == cliq_id, Post.id.in_(post_ids))
        )
        return set(result.scalars().all())

    async def ids_by_author(self, cliq_id: UUID, author_id: UUID) -> set[UUID]:
        result = await self.session.execute(
            select(Post.id).where(Post.cliq_id == cliq_id, Post.author_id == author_id)
        )
        return set(result.scalars().all())

    async def ids_in_range(self, cliq_id: UUID, start: datetime, end: datetime) -> set[UUID]:
        result = await self.session.execute(
            select(Post.id).where(
                Post.cliq_id == cliq_id,
                Post.created_at >= start,
                Post.created_at <= end,
            )
        )
        return set(result.scalars().all())

    async def list_suspendable(self, post_ids: set[UUID]) -> list[Post]:
        """Posts from the set that are not deleted and not already suspended."""
        if not post_ids:
            return []
        result = await self.session.execute(
            select(Post).where(
                Post.id.in_(list(post_ids)),
                Post.deleted_at.is_(None),
                Post.moderation_status != ModerationStatus.SUSPENDED.value,
            )
        )
        return list(result.scalars().all())

    async def list_by_red_alert(self, red_alert_id: UUID) -> list[Post]:
        result = await self.session.execute(select(Post).where(Post.red_alert_id == red_alert_id))
        return list(result.scalars().all())


class RedAlertRepository(BaseRepository[RedAlert]):
    """Repository for RedAlert database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(RedAlert, session)

    async def list_by_cliq(self, cliq_id: UUID, status: Optional[str] = None) -> list[RedAlert]:
        query = select(RedAlert).where(RedAlert.cliq_id == cliq_id)
        if status:
            query = query.where(RedAlert.status == status)
        result = await self.session.execute(query.order_by(RedAlert.created_at.desc()))
        return list(result.scalars().all())
