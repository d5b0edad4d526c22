"""
Red Alert Service

Raises Red Alerts: hides the reported content at once and tells the adults
responsible for the children in the cliq.

Suspension Set:
===============
    post_ids (+ post_id) ∪ posts by user_id ∪ posts created in time_range
        │
        ├─ restricted to the alert's cliq
        ├─ deduplicated
        └─ minus posts already suspended

so overlapping filters, and overlapping alerts raised one after another,
never count the same post twice.

Notification Fan-out:
=====================
    child members of the cliq
        → their ParentLinks (receives_notifications != false)
        → link email + second_parent_email
        → each address emailed at most once
    + the moderation mailbox, always

For automated (ai) alerts, children whose settings turn off
receive_ai_alerts are left out. Each send is independent: a failure is
logged and the fan-out continues.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.core.exceptions import (
    AuthorizationError,
    CliqNotFoundError,
    PostNotFoundError,
    RedAlertNotFoundError,
)
from cliqstr.shared.core.logging import get_logger
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.enums import (
    AccountRole,
    MembershipRole,
    ModerationStatus,
    RedAlertStatus,
    RedAlertTrigger,
)
from cliqstr.shared.models.post import RedAlert
from cliqstr.shared.models.user import User
from cliqstr.shared.repositories import (
    AccountRepository,
    ChildSettingsRepository,
    CliqRepository,
    MembershipRepository,
    ParentLinkRepository,
    PostRepository,
    RedAlertRepository,
)
from cliqstr.shared.schemas.red_alert import ContentToSuspend
from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.utils.security import normalize_email

logger = get_logger("cliqstr.red_alert")


class RedAlertService:
    """
    Service for Red Alerts.

    Attributes:
        session: Database session
        repo: RedAlertRepository instance
        notifications: Outbound email
    """

    def __init__(
        self,
        session: AsyncSession,
        notifications: Optional[NotificationService] = None,
    ) -> None:
        self.session = session
        self.repo = RedAlertRepository(session)
        self.posts = PostRepository(session)
        self.cliqs = CliqRepository(session)
        self.memberships = MembershipRepository(session)
        self.accounts = AccountRepository(session)
        self.links = ParentLinkRepository(session)
        self.child_settings = ChildSettingsRepository(session)
        self.notifications = notifications or NotificationService()

    # ═══════════════════════════════════════════════════════════════════════════
    # RAISE
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_alert(
        self,
        *,
        cliq_id: UUID,
        reason: str,
        reporter: Optional[User] = None,
        post_id: Optional[UUID] = None,
        content: Optional[ContentToSuspend] = None,
        trigger_type: Optional[RedAlertTrigger] = None,
    ) -> dict[str, Any]:
        """
        Raise a Red Alert.

        Args:
            reporter: Signed-in member raising the alert; None for automated moderation
            trigger_type: Defaults from the reporter's role (Child → child, else adult)

        Returns:
            Dict matching RedAlertCreateResponse

        Raises:
            CliqNotFoundError: Cliq missing or deleted
            AuthorizationError: Reporter is not a member
            PostNotFoundError: post_id is not a post of this cliq
        """
        cliq = await self.cliqs.get_active(cliq_id)
        if cliq is None:
            raise CliqNotFoundError(str(cliq_id))

        if reporter is not None:
            if await self.memberships.get_membership(reporter.id, cliq.id) is None:
                raise AuthorizationError("You must be a member of this cliq to raise a Red Alert")
            if trigger_type is None:
                account = await self.accounts.get_by_user_id(reporter.id)
                is_child = account is not None and account.role == AccountRole.CHILD.value
                trigger_type = RedAlertTrigger.CHILD if is_child else RedAlertTrigger.ADULT
        trigger_type = trigger_type or RedAlertTrigger.AI

        content = content or ContentToSuspend()
        if post_id is not None and not await self.posts.ids_in_cliq(cliq.id, [post_id]):
            raise PostNotFoundError(str(post_id))

        alert = await self.repo.create(
            cliq_id=cliq.id,
            post_id=post_id,
            triggered_by_id=reporter.id if reporter else None,
            trigger_type=trigger_type.value,
            reason=reason,
            status=RedAlertStatus.PENDING.value,
            suspended_content_count=0,
        )

        target_ids = await self._collect_targets(cliq.id, post_id, content)
        suspended = await self._suspend(target_ids, alert, reporter, reason)
        alert.suspended_content_count = suspended
        await self.repo.save(alert)

        recipients = await self._parent_recipients(cliq.id, trigger_type)
        notified = 0
        for email in recipients:
            if await self.notifications.send_red_alert_to_parent(email, alert, cliq.name):
                notified += 1
        moderator_notified = await self.notifications.send_red_alert_to_moderators(alert, cliq.name)

        logger.info(
            "red_alert_created",
            red_alert_id=str(alert.id),
            cliq_id=str(cliq.id),
            trigger_type=alert.trigger_type,
            suspended_content=suspended,
            notified=notified,
            total_parents=len(recipients),
            moderator_notified=moderator_notified,
        )
        return {
            "success": True,
            "red_alert_id": alert.id,
            "trigger_type": alert.trigger_type,
            "suspended_content": suspended,
            "notified": notified,
            "total_parents": len(recipients),
            "moderator_notified": moderator_notified,
        }

    async def _collect_targets(
        self,
        cliq_id: UUID,
        post_id: Optional[UUID],
        content: ContentToSuspend,
    ) -> set[UUID]:
        post_ids = list(content.post_ids)
        if post_id is not None:
            post_ids.append(post_id)

        targets = await self.posts.ids_in_cliq(cliq_id, post_ids)
        if content.user_id is not None:
            targets |= await self.posts.ids_by_author(cliq_id, content.user_id)
        if content.time_range is not None:
            targets |= await self.posts.ids_in_range(
                cliq_id,
                content.time_range.start_time,
                content.time_range.end_time,
            )
        return targets

    async def _suspend(
        self,
        target_ids: set[UUID],
        alert: RedAlert,
        reporter: Optional[User],
        reason: str,
    ) -> int:
        now = utc_now()
        posts = await self.posts.list_suspendable(target_ids)
        for post in posts:
            post.moderation_status = ModerationStatus.SUSPENDED.value
            post.suspended_at = now
            post.suspended_by_id = reporter.id if reporter else None
            post.suspension_reason = reason
            post.red_alert_id = alert.id
            await self.posts.save(post)
        return len(posts)

    async def _parent_recipients(self, cliq_id: UUID, trigger_type: RedAlertTrigger) -> list[str]:
        """Unique parent addresses for the children of a cliq, in link order."""
        members = await self.memberships.list_by_cliq(cliq_id)
        accounts = await self.accounts.get_by_user_ids([m.user_id for m in members])
        child_ids = [
            user_id for user_id, account in accounts.items() if account.role == AccountRole.CHILD.value
        ]

        if trigger_type == RedAlertTrigger.AI:
            settings_by_child = await self.child_settings.get_for_children(child_ids)
            child_ids = [
                child_id
                for child_id in child_ids
                if child_id not in settings_by_child or settings_by_child[child_id].receive_ai_alerts
            ]

        recipients: list[str] = []
        seen: set[str] = set()
        for link in await self.links.list_for_children(child_ids):
            if not link.has_permission("receives_notifications"):
                continue
            for address in (link.email, link.second_parent_email):
                if not address:
                    continue
                address = normalize_email(address)
                if address not in seen:
                    seen.add(address)
                    recipients.append(address)
        return recipients

    # ═══════════════════════════════════════════════════════════════════════════
    # REVIEW
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_alerts(self, user: User, cliq_id: UUID, status: Optional[str] = None) -> list[RedAlert]:
        """
        Alerts of a cliq, newest first. Cliq owners and Admins only.

        Raises:
            CliqNotFoundError: Cliq missing
            AuthorizationError: Caller is neither owner nor Admin
        """
        cliq = await self.cliqs.get_active(cliq_id)
        if cliq is None:
            raise CliqNotFoundError(str(cliq_id))

        if cliq.owner_id != user.id and not await self._is_admin(user):
            membership = await self.memberships.get_membership(user.id, cliq_id)
            if membership is None or membership.role != MembershipRole.OWNER.value:
                raise AuthorizationError("Only the cliq owner can view Red Alerts")
        return await self.repo.list_by_cliq(cliq_id, status)

    async def review(
        self,
        user: User,
        alert_id: UUID,
        status: str,
        moderator_notes: Optional[str] = None,
    ) -> RedAlert:
        """
        Admin review. Dismissing an alert restores the posts it suspended.

        Raises:
            AuthorizationError: Caller is not an Admin
            RedAlertNotFoundError: Unknown alert
        """
        if not await self._is_admin(user):
            raise AuthorizationError("Only moderators can review Red Alerts")

        alert = await self.repo.get(alert_id)
        if alert is None:
            raise RedAlertNotFoundError(str(alert_id))

        alert.status = RedAlertStatus(status).value
        alert.moderator_notes = moderator_notes or alert.moderator_notes
        alert.reviewed_by_id = user.id
        alert.reviewed_at = utc_now()
        await self.repo.save(alert)

        restored = 0
        if alert.status == RedAlertStatus.DISMISSED.value:
            for post in await self.posts.list_by_red_alert(alert.id):
                if post.moderation_status != ModerationStatus.SUSPENDED.value:
                    continue
                post.moderation_status = ModerationStatus.APPROVED.value
                post.suspended_at = None
                post.suspended_by_id = None
                post.suspension_reason = None
                post.red_alert_id = None
                await self.posts.save(post)
                restored += 1

        logger.info(
            "red_alert_reviewed",
            red_alert_id=str(alert.id),
            status=alert.status,
            reviewer_id=str(user.id),
            restored_posts=restored,
        )
        return alert

    async def _is_admin(self, user: User) -> bool:
        account = await self.accounts.get_by_user_id(user.id)
        return account is not None and account.role == AccountRole.ADMIN.value
