"""
Parent Service

Parents HQ operations on existing children: listing, settings, co-parent
links and activity logs.

Access Rule:
============
Every operation starts from the caller's ParentLink to the child (matched
on parent_id, or on email for links made before the parent signed up).
No link → the child is reported as not found. Individual operations then
check a link permission:

    update settings     → can_change_settings
    add parent          → can_manage_child
    remove parent       → primary link or can_manage_child
    activity logs       → can_view_activity
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.shared.core.exceptions import (
    AuthorizationError,
    ChildNotFoundError,
    DuplicateResourceError,
    NotFoundError,
    ParentEmailRequiredError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger, mask_email
from cliqstr.shared.models.enums import AccountRole, AuditAction, ParentLinkRole
from cliqstr.shared.models.parent import SECONDARY_PARENT_PERMISSIONS, ParentLink
from cliqstr.shared.models.profile import ChildSettings
from cliqstr.shared.models.user import User
from cliqstr.shared.repositories import (
    AccountRepository,
    ActivityLogRepository,
    ChildSettingsRepository,
    ParentAuditLogRepository,
    ParentLinkRepository,
    ProfileRepository,
    UserRepository,
)
from cliqstr.shared.schemas.parent import ChildPermissions
from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.utils.security import normalize_email

logger = get_logger("cliqstr.parents")


class ParentService:
    """Service for Parents HQ child management."""

    def __init__(
        self,
        session: AsyncSession,
        notifications: Optional[NotificationService] = None,
    ) -> None:
        self.session = session
        self.links = ParentLinkRepository(session)
        self.users = UserRepository(session)
        self.accounts = AccountRepository(session)
        self.profiles = ProfileRepository(session)
        self.child_settings = ChildSettingsRepository(session)
        self.audit = ParentAuditLogRepository(session)
        self.activity = ActivityLogRepository(session)
        self.notifications = notifications or NotificationService()

    async def require_link(
        self,
        parent: User,
        child_id: UUID,
        permission: Optional[str] = None,
    ) -> ParentLink:
        """
        The caller's link to a child.

        Raises:
            ChildNotFoundError: No link between caller and child
            AuthorizationError: Link lacks the permission
        """
        link = await self.links.get_link(parent.id, parent.email, child_id)
        if link is None:
            raise ChildNotFoundError(str(child_id))
        if permission and not link.has_permission(permission):
            raise AuthorizationError(
                "You do not have permission to do this for this child",
                details={"permission": permission},
            )
        return link

    # ═══════════════════════════════════════════════════════════════════════════
    # CHILDREN
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_children(self, parent: User) -> list[dict[str, Any]]:
        links = await self.links.list_for_parent(parent.id, parent.email)
        child_ids = [link.child_id for link in links]
        accounts = await self.accounts.get_by_user_ids(child_ids)
        profiles = await self.profiles.get_by_user_ids(child_ids)
        settings_by_child = await self.child_settings.get_for_children(child_ids)

        children = []
        for link in links:
            account = accounts.get(link.child_id)
            if account is None:
                continue
            profile = profiles.get(link.child_id)
            children.append(
                {
                    "id": link.child_id,
                    "username": profile.username if profile else None,
                    "first_name": account.first_name,
                    "last_name": account.last_name,
                    "birthdate": account.birthdate,
                    "role": account.role,
                    "link_role": link.role,
                    "settings": settings_by_child.get(link.child_id),
                }
            )
        return children

    async def get_child(self, parent: User, child_id: UUID) -> dict[str, Any]:
        link = await self.require_link(parent, child_id)
        account = await self.accounts.get_by_user_id(child_id)
        if account is None:
            raise ChildNotFoundError(str(child_id))
        profile = await self.profiles.get_by_user_id(child_id)
        return {
            "id": child_id,
            "username": profile.username if profile else None,
            "first_name": account.first_name,
            "last_name": account.last_name,
            "birthdate": account.birthdate,
            "role": account.role,
            "link_role": link.role,
            "settings": await self.child_settings.get_for_child(child_id),
        }

    # ═══════════════════════════════════════════════════════════════════════════
    # SETTINGS
    # ═══════════════════════════════════════════════════════════════════════════

    async def update_settings(
        self,
        parent: User,
        child_id: UUID,
        permissions: ChildPermissions,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ChildSettings:
        """
        Apply permission changes and record them in the audit log.

        Raises:
            ChildNotFoundError: Not linked to the child
            AuthorizationError: Link lacks can_change_settings
        """
        await self.require_link(parent, child_id, "can_change_settings")
        settings_row = await self.child_settings.get_for_child(child_id)
        if settings_row is None:
            raise ChildNotFoundError(str(child_id))

        updates = permissions.as_updates()
        old_value = {field: getattr(settings_row, field) for field in updates}
        for field, value in updates.items():
            setattr(settings_row, field, value)
        await self.child_settings.save(settings_row)

        if "ai_moderation_level" in updates:
            profile = await self.profiles.get_by_user_id(child_id)
            if profile is not None:
                profile.ai_moderation_level = updates["ai_moderation_level"]
                await self.profiles.save(profile)

        await self.audit.create(
            parent_id=parent.id,
            child_id=child_id,
            action=AuditAction.UPDATE_SETTINGS.value,
            old_value=old_value,
            new_value=updates,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(
            "child_settings_updated",
            parent_id=str(parent.id),
            child_id=str(child_id),
            fields=sorted(updates),
        )
        return settings_row

    # ═══════════════════════════════════════════════════════════════════════════
    # PARENT LINKS
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_parents(self, parent: User, child_id: UUID) -> list[ParentLink]:
        await self.require_link(parent, child_id)
        return await self.links.list_for_child(child_id)

    async def add_parent(
        self,
        parent: User,
        child_id: UUID,
        email: str,
        role: ParentLinkRole,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ParentLink:
        """
        Link another parent or guardian to a child.

        Raises:
            AuthorizationError: Link lacks can_manage_child
            ParentEmailRequiredError: Email belongs to a child account
            DuplicateResourceError: Email already linked to the child
        """
        await self.require_link(parent, child_id, "can_manage_child")
        email = normalize_email(email)

        user, account = await self.users.get_with_account(email)
        if account is not None and account.role == AccountRole.CHILD.value:
            raise ParentEmailRequiredError()
        if await self.links.get_by_email_and_child(email, child_id) is not None:
            raise DuplicateResourceError("This parent is already linked to the child")

        link = await self.links.create(
            parent_id=user.id if user else None,
            email=email,
            child_id=child_id,
            type="guardian" if role == ParentLinkRole.GUARDIAN else "parent",
            role=role.value,
            permissions=dict(SECONDARY_PARENT_PERMISSIONS),
        )
        await self.audit.create(
            parent_id=parent.id,
            child_id=child_id,
            action=AuditAction.ADD_PARENT.value,
            new_value={"email": email, "role": role.value},
            ip_address=ip_address,
            user_agent=user_agent,
        )

        profile = await self.profiles.get_by_user_id(child_id)
        parent_account = await self.accounts.get_by_user_id(parent.id)
        await self.notifications.send_parent_link_invite(
            email,
            profile.username if profile else "your child",
            (parent_account.full_name if parent_account else "") or parent.email,
        )
        logger.info(
            "parent_link_added",
            child_id=str(child_id),
            email=mask_email(email),
            role=role.value,
        )
        return link

    async def remove_parent(
        self,
        parent: User,
        child_id: UUID,
        link_id: UUID,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """
        Remove a parent link. The child's last link can never be removed.

        Raises:
            AuthorizationError: Caller is neither primary nor managing
            NotFoundError: Link missing or belongs to another child
            ValidationError: Last remaining link
        """
        caller_link = await self.require_link(parent, child_id)
        if caller_link.role != ParentLinkRole.PRIMARY.value and not caller_link.has_permission(
            "can_manage_child"
        ):
            raise AuthorizationError("Only the primary parent can remove parents")

        link = await self.links.get(link_id)
        if link is None or link.child_id != child_id:
            raise NotFoundError("Parent link", str(link_id))
        if await self.links.count_for_child(child_id) <= 1:
            raise ValidationError(
                "A child must always have at least one parent",
                error_code="LAST_PARENT",
            )

        removed_email, removed_role = link.email, link.role
        await self.links.delete(link.id)
        await self.audit.create(
            parent_id=parent.id,
            child_id=child_id,
            action=AuditAction.REMOVE_PARENT.value,
            old_value={"email": removed_email, "role": removed_role},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("parent_link_removed", child_id=str(child_id), email=mask_email(removed_email))

    # ═══════════════════════════════════════════════════════════════════════════
    # ACTIVITY
    # ═══════════════════════════════════════════════════════════════════════════

    async def activity_logs(self, parent: User, child_id: UUID, limit: int = 50) -> list[dict[str, Any]]:
        """Audit and activity entries for a child, newest first."""
        await self.require_link(parent, child_id, "can_view_activity")

        entries = [
            {
                "source": "audit",
                "action": entry.action,
                "detail": entry.new_value,
                "actor_id": entry.parent_id,
                "created_at": entry.created_at,
            }
            for entry in await self.audit.list_for_child(child_id, limit)
        ]
        entries += [
            {
                "source": "activity",
                "action": entry.event,
                "detail": entry.detail,
                "actor_id": entry.user_id,
                "created_at": entry.created_at,
            }
            for entry in await self.activity.list_for_user(child_id, limit)
        ]
        entries.sort(key=lambda e: e["created_at"], reverse=True)
        return entries[:limit]
