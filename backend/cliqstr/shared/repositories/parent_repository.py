"""
Parent Repositories

Database operations for ParentApproval, ParentLink, ParentConsent and
ParentAuditLog.

Common Operations:
==================
- ParentApprovalRepository.get_by_token()       → Approval link lookup
- ParentApprovalRepository.list_live_for_email() → Approvals a parent can still act on
- ParentLinkRepository.get_link()               → Is this parent linked to this child?
- ParentLinkRepository.list_for_children()      → Red Alert recipient lookup
- ParentConsentRepository.has_valid_consent()   → Child may use gated features
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.functions import count as sql_count

from cliqstr.shared.models.enums import ApprovalStatus
from cliqstr.shared.models.parent import (
    ParentApproval,
    ParentAuditLog,
    ParentConsent,
    ParentLink,
)
from cliqstr.shared.repositories.base import BaseRepository


class ParentApprovalRepository(BaseRepository[ParentApproval]):
    """Repository for ParentApproval database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ParentApproval, session)

    async def get_by_token(self, token: str) -> Optional[ParentApproval]:
        result = await self.session.execute(
            select(ParentApproval).where(ParentApproval.approval_token == token)
        )
        return result.scalar_one_or_none()

    async def get_by_invite_id(self, invite_id: UUID) -> Optional[ParentApproval]:
        result = await self.session.execute(
            select(ParentApproval).where(ParentApproval.invite_id == invite_id)
        )
        return result.scalars().first()

    async def list_live_for_email(self, parent_email: str, now: datetime) -> list[ParentApproval]:
        """
        Approvals the parent can still act on, newest first.

        Live = pending or approved, not expired, no child created yet.
        """
        result = await self.session.execute(
            select(ParentApproval)
            .where(
                ParentApproval.parent_email == parent_email,
                ParentApproval.status.in_(
                    [ApprovalStatus.PENDING.value, ApprovalStatus.APPROVED.value]
                ),
                ParentApproval.completed_at.is_(None),
                ParentApproval.expires_at > now,
            )
            .order_by(ParentApproval.created_at.desc())
        )
        return list(result.scalars().all())


class ParentLinkRepository(BaseRepository[ParentLink]):
    """Repository for ParentLink database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ParentLink, session)

    async def get_link(self, parent_id: UUID, parent_email: str, child_id: UUID) -> Optional[ParentLink]:
        """
        Link between a parent and a child.

        Matches on parent_id or, for links created before the parent had
        an account, on email.
        """
        result = await self.session.execute(
            select(ParentLink).where(
                ParentLink.child_id == child_id,
                or_(ParentLink.parent_id == parent_id, ParentLink.email == parent_email),
            )
        )
        return result.scalars().first()

    async def get_by_email_and_child(self, email: str, child_id: UUID) -> Optional[ParentLink]:
        result = await self.session.execute(
            select(ParentLink).where(ParentLink.email == email, ParentLink.child_id == child_id)
        )
        return result.scalar_one_or_none()

    async def list_for_parent(self, parent_id: UUID, parent_email: str) -> list[ParentLink]:
        result = await self.session.execute(
            select(ParentLink)
            .where(or_(ParentLink.parent_id == parent_id, ParentLink.email == parent_email))
            .order_by(ParentLink.created_at)
        )
        return list(result.scalars().all())

    async def list_for_child(self, child_id: UUID) -> list[ParentLink]:
        result = await self.session.execute(
            select(ParentLink).where(ParentLink.child_id == child_id).order_by(ParentLink.created_at)
        )
        return list(result.scalars().all())

    async def list_for_children(self, child_ids: list[UUID]) -> list[ParentLink]:
        if not child_ids:
            return []
        result = await self.session.execute(
            select(ParentLink).where(ParentLink.child_id.in_(child_ids)).order_by(ParentLink.created_at)
        )
        return list(result.scalars().all())

    async def count_for_child(self, child_id: UUID) -> int:
        result = await self.session.execute(
            select(sql_count()).select_from(ParentLink).where(ParentLink.child_id == child_id)
        )
        return result.scalar() or 0


class ParentConsentRepository(BaseRepository[ParentConsent]):
    """Repository for ParentConsent database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ParentConsent, session)

    async def has_valid_consent(self, child_id: UUID) -> bool:
        """A child has valid consent once a parent accepted Red Alert terms."""
        result = await self.session.execute(
            select(ParentConsent.id).where(
                ParentConsent.child_id == child_id,
                ParentConsent.red_alert_accepted.is_(True),
            )
        )
        return result.first() is not None


class ParentAuditLogRepository(BaseRepository[ParentAuditLog]):
    """Repository for ParentAuditLog database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ParentAuditLog, session)

    async def list_for_child(self, child_id: UUID, limit: int = 50) -> list[ParentAuditLog]:
        result = await self.session.execute(
            select(ParentAuditLog)
            .where(ParentAuditLog.child_id == child_id)
            .order_by(ParentAuditLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
