"""
Cliq Service

Cliqs, their members, posts and notices.

Access Rules:
=============
    create cliq     → caller has a plan; Child callers (covered by a
                      parent plan) need the can_create_<privacy>_cliqs flag
    read anything   → caller is a member
    post            → caller is a member
    add notice      → caller owns the cliq
    promote/demote  → caller owns the cliq
    remove member   → owner removes anyone but themself; a Moderator
                      removes plain Members only
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CliqNotFoundError,
    NotFoundError,
    PlanRequiredError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.cliq import Cliq, CliqNotice, Membership
from cliqstr.shared.models.enums import (
    AccountRole,
    CliqPrivacy,
    MemberAction,
    MembershipRole,
    NoticeType,
)
from cliqstr.shared.models.post import Post
from cliqstr.shared.models.user import User
from cliqstr.shared.repositories import (
    AccountRepository,
    ChildSettingsRepository,
    CliqNoticeRepository,
    CliqRepository,
    MembershipRepository,
    PostRepository,
    ProfileRepository,
)
from cliqstr.shared.schemas.cliq import CliqCreateRequest

logger = get_logger("cliqstr.cliqs")


# Child permission flag required to create a cliq of each privacy
CREATE_FLAGS = {
    CliqPrivacy.PUBLIC: "can_create_public_cliqs",
    CliqPrivacy.PRIVATE: "can_create_private_cliqs",
    CliqPrivacy.SEMI_PRIVATE: "can_create_semi_private_cliqs",
}


class CliqService:
    """Service for cliqs, posts and notices."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = CliqRepository(session)
        self.memberships = MembershipRepository(session)
        self.notices = CliqNoticeRepository(session)
        self.posts = PostRepository(session)
        self.accounts = AccountRepository(session)
        self.profiles = ProfileRepository(session)
        self.child_settings = ChildSettingsRepository(session)

    async def get_cliq(self, cliq_id: UUID) -> Cliq:
        cliq = await self.repo.get_active(cliq_id)
        if cliq is None:
            raise CliqNotFoundError(str(cliq_id))
        return cliq

    async def require_member(self, user: User, cliq_id: UUID) -> tuple[Cliq, Membership]:
        """
        The cliq and the caller's membership in it.

        Raises:
            CliqNotFoundError: Cliq missing or deleted
            AuthorizationError: Caller is not a member
        """
        cliq = await self.get_cliq(cliq_id)
        membership = await self.memberships.get_membership(user.id, cliq.id)
        if membership is None:
            raise AuthorizationError("You are not a member of this cliq")
        return cliq, membership

    # ═══════════════════════════════════════════════════════════════════════════
    # CLIQS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_cliq(self, owner: User, data: CliqCreateRequest) -> Cliq:
        """
        Create a cliq with the caller as its Owner member.

        Raises:
            PlanRequiredError: No plan on the account
            AuthorizationError: Child without the matching create permission
        """
        account = await self.accounts.get_by_user_id(owner.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")

        if account.role == AccountRole.CHILD.value:
            flag = CREATE_FLAGS[data.privacy]
            settings_row = await self.child_settings.get_for_child(owner.id)
            if settings_row is None or not getattr(settings_row, flag):
                raise AuthorizationError(
                    f"Your parent has not allowed you to create {data.privacy.value.replace('_', '-')} cliqs",
                    error_code="CLIQ_NOT_PERMITTED",
                )
        elif not account.plan:
            raise PlanRequiredError()

        cliq = await self.repo.create(
            name=data.name.strip(),
            description=data.description,
            owner_id=owner.id,
            privacy=data.privacy.value,
            min_age=data.min_age,
            max_age=data.max_age,
        )
        await self.memberships.create(user_id=owner.id, cliq_id=cliq.id, role=MembershipRole.OWNER.value)

        logger.info("cliq_created", cliq_id=str(cliq.id), owner_id=str(owner.id), privacy=cliq.privacy)
        return cliq

    async def list_my_cliqs(self, user: User) -> list[Cliq]:
        return await self.repo.list_for_member(user.id)

    async def list_members(self, user: User, cliq_id: UUID) -> list[dict]:
        await self.require_member(user, cliq_id)
        memberships = await self.memberships.list_by_cliq(cliq_id)
        profiles = await self.profiles.get_by_user_ids([m.user_id for m in memberships])
        return [
            {
                "user_id": m.user_id,
                "username": profiles[m.user_id].username if m.user_id in profiles else None,
                "role": m.role,
                "joined_at": m.created_at,
            }
            for m in memberships
        ]

    async def apply_member_action(
        self,
        user: User,
        cliq_id: UUID,
        target_user_id: UUID,
        action: MemberAction,
    ) -> Optional[Membership]:
        """
        Promote, demote or remove another member.

        Returns:
            The updated membership, or None after a removal

        Raises:
            AuthorizationError: Caller may not act on this member
            NotFoundError: Target is not a member
            ValidationError: Action does not fit the target's role
        """
        _, membership = await self.require_member(user, cliq_id)
        if membership.role == MembershipRole.MEMBER.value:
            raise AuthorizationError("Only the cliq owner or a moderator can manage members")
        if target_user_id == user.id:
            raise ValidationError("You cannot do this to yourself", error_code="INVALID_MEMBER_ACTION")

        target = await self.memberships.get_membership(target_user_id, cliq_id)
        if target is None:
            raise NotFoundError("Member", str(target_user_id))
        if target.role == MembershipRole.OWNER.value:
            raise AuthorizationError("The cliq owner cannot be changed or removed")

        is_owner = membership.role == MembershipRole.OWNER.value
        if action == MemberAction.REMOVE:
            if not is_owner and target.role != MembershipRole.MEMBER.value:
                raise AuthorizationError("Moderators can only remove members")
            await self.memberships.delete(target.id)
            logger.info(
                "cliq_member_removed",
                cliq_id=str(cliq_id),
                member_id=str(target_user_id),
                removed_by=str(user.id),
            )
            return None

        if not is_owner:
            raise AuthorizationError("Only the cliq owner can change member roles")

        if action == MemberAction.PROMOTE:
            expected, new_role = MembershipRole.MEMBER, MembershipRole.MODERATOR
        else:
            expected, new_role = MembershipRole.MODERATOR, MembershipRole.MEMBER
        if target.role != expected.value:
            raise ValidationError(
                f"Only a {expected.value} can be {action.value}d",
                error_code="INVALID_MEMBER_ACTION",
            )

        target.role = new_role.value
        await self.memberships.save(target)
        logger.info(
            "cliq_member_role_changed",
            cliq_id=str(cliq_id),
            member_id=str(target_user_id),
            role=target.role,
        )
        return target

    # ═══════════════════════════════════════════════════════════════════════════
    # POSTS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_post(self, author: User, cliq_id: UUID, content: str) -> Post:
        await self.require_member(author, cliq_id)
        post = await self.posts.create(cliq_id=cliq_id, author_id=author.id, content=content)
        logger.info("post_created", post_id=str(post.id), cliq_id=str(cliq_id))
        return post

    async def list_posts(self, user: User, cliq_id: UUID, offset: int = 0, limit: int = 50) -> list[Post]:
        """Visible posts only: suspended and deleted posts never appear."""
        await self.require_member(user, cliq_id)
        return await self.posts.list_visible(cliq_id, offset=offset, limit=limit)

    # ═══════════════════════════════════════════════════════════════════════════
    # NOTICES
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_notices(self, user: User, cliq_id: UUID) -> list[CliqNotice]:
        await self.require_member(user, cliq_id)
        return await self.notices.list_active(cliq_id, utc_now())

    async def create_notice(
        self,
        user: User,
        cliq_id: UUID,
        content: str,
        expires_at: Optional[datetime] = None,
    ) -> CliqNotice:
        """
        Pin an admin notice to a cliq.

        Raises:
            AuthorizationError: Caller is not the cliq owner
        """
        cliq = await self.get_cliq(cliq_id)
        if cliq.owner_id != user.id:
            membership = await self.memberships.get_membership(user.id, cliq_id)
            if membership is None or membership.role != MembershipRole.OWNER.value:
                raise AuthorizationError("Only the cliq owner can post notices")

        notice = await self.notices.create(
            cliq_id=cliq.id,
            type=NoticeType.ADMIN.value,
            content=content.strip(),
            created_by_id=user.id,
            expires_at=expires_at,
        )
        logger.info("cliq_notice_created", cliq_id=str(cliq.id), notice_id=str(notice.id))
        return notice

