"""
User Repository

Database operations for User and Account.

Common Operations:
==================
- get_by_email()        → Find user by (normalized) email address
- email_exists()        → Check if email is already registered
- get_with_account()    → User + Account in one query
- get_by_reset_token() → User holding a hashed password reset token

Emails are stored normalized (trimmed, lower-case); callers normalize
before looking up.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.models.user import Account, User
from cliqstr.shared.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(User, session)

    # ═══════════════════════════════════════════════════════════════════════════
    # LOOKUP METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get an active user by email address.

        SQL Generated:
            SELECT * FROM users WHERE email = 'parent@example.com' AND deleted_at IS NULL
        """
        result = await self.session.execute(
            select(User).where(User.email == email, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """True if any user (deleted or not) owns this email."""
        result = await self.session.execute(select(User.id).where(User.email == email))
        return result.first() is not None

    async def get_with_account(self, email: str) -> tuple[Optional[User], Optional[Account]]:
        """
        Get a user and their account by email.

        Returns (None, None) when no user exists, and (user, None) for a
        user whose account record is missing.
        """
        result = await self.session.execute(
            select(User, Account)
            .outerjoin(Account, Account.user_id == User.id)
            .where(User.email == email, User.deleted_at.is_(None))
        )
        row = result.first()
        if row is None:
            return None, None
        return row[0], row[1]

    async def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        """Active user whose stored reset token hash matches. Expiry is checked by the caller."""
        result = await self.session.execute(
            select(User).where(User.reset_token == token_hash, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()


class AccountRepository(BaseRepository[Account]):
    """Repository for Account database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Account, session)

    async def get_by_user_id(self, user_id: UUID) -> Optional[Account]:
        result = await self.session.execute(select(Account).where(Account.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_user_ids(self, user_ids: list[UUID]) -> dict[UUID, Account]:
        """Accounts keyed by user id."""
        if not user_ids:
            return {}
        result = await self.session.execute(select(Account).where(Account.user_id.in_(user_ids)))
        return {account.user_id: account for account in result.scalars().all()}
