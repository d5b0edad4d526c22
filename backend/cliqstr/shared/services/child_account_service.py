"""
Child Account Service

Creates a child's account from Parents HQ.

Authorization:
==============
Exactly one of:
    approval_token  → live ParentApproval addressed to the caller
                      (pending or approved, not expired, not completed)
    invite_code     → child Invite addressed to the caller
                      (pending or accepted, unused, not expired)

Bundle (one transaction):
=========================
    ┌──────────────────────────────────────────────────────────────────────┐
    │ User + Account(role=Child, approved, names, birthdate)               │
    │ Profile(username, show_year=false)                                   │
    │ ChildSettings(safe defaults + parent overrides)                      │
    │ ParentConsent(red_alert_accepted, ip, user agent)                    │
    │ ParentAuditLog(APPROVE_CHILD)                                        │
    │ ParentLink(primary, full permissions) [+ secondary link]             │
    │ PlanMembership on the parent's plan                                  │
    │ Membership in the inviting cliq (child_invite approvals)             │
    │ ParentApproval.completed_at / child_id, Invite used + completed      │
    │ parent Account.setup_stage = completed                               │
    └──────────────────────────────────────────────────────────────────────┘

Any failure rolls back the whole bundle. Domain errors (plan full, ...)
surface unchanged; anything else becomes ChildAccountCreationError.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ChildAccountCreationError,
    CliqstrException,
    DuplicateResourceError,
    InvalidTokenError,
    InviteNotFoundError,
    ParentEmailRequiredError,
    PlanRequiredError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.enums import (
    AccountRole,
    AiModerationLevel,
    ApprovalStatus,
    AuditAction,
    InviteStatus,
    InviteType,
    ParentLinkRole,
    SetupStage,
)
from cliqstr.shared.models.invite import Invite
from cliqstr.shared.models.parent import (
    FULL_PARENT_PERMISSIONS,
    SECONDARY_PARENT_PERMISSIONS,
    ParentApproval,
)
from cliqstr.shared.models.user import Account, User
from cliqstr.shared.repositories import (
    AccountRepository,
    ChildSettingsRepository,
    CliqRepository,
    InviteRepository,
    MembershipRepository,
    ParentApprovalRepository,
    ParentAuditLogRepository,
    ParentConsentRepository,
    ParentLinkRepository,
    ProfileRepository,
    UserRepository,
)
from cliqstr.shared.schemas.parent import CreateChildRequest
from cliqstr.shared.services.auth_service import AuthService
from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.services.parent_approval_service import ParentApprovalService
from cliqstr.shared.services.plan_service import PlanService
from cliqstr.shared.utils.constants import PARENTS_HQ_SUCCESS_PATH
from cliqstr.shared.utils.security import SecurityUtils, normalize_email

logger = get_logger("cliqstr.children")


class ChildAccountService:
    """
    Service for creating child accounts.

    Attributes:
        session: Database session (the request transaction)
        notifications: Outbound email
    """

    def __init__(
        self,
        session: AsyncSession,
        notifications: Optional[NotificationService] = None,
    ) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.accounts = AccountRepository(session)
        self.profiles = ProfileRepository(session)
        self.child_settings = ChildSettingsRepository(session)
        self.consents = ParentConsentRepository(session)
        self.audit = ParentAuditLogRepository(session)
        self.links = ParentLinkRepository(session)
        self.approvals = ParentApprovalRepository(session)
        self.invites = InviteRepository(session)
        self.cliqs = CliqRepository(session)
        self.memberships = MembershipRepository(session)
        self.notifications = notifications or NotificationService()

    async def create_child(
        self,
        parent: User,
        data: CreateChildRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Create a child account for the signed-in parent.

        Returns:
            Dict with child_id, username, joined_cliq_id, redirect_url

        Raises:
            AuthorizationError: Child caller, token for another parent, plan full
            PlanRequiredError: Parent has no plan
            ValidationError: Red Alert terms not accepted
            InvalidTokenError: Token expired, declined or already used
            DuplicateResourceError: Username or email taken
            ChildAccountCreationError: Bundle write failed, nothing kept
        """
        account = await self._require_adult_account(parent)
        if not data.red_alert_accepted:
            raise ValidationError(
                "Red Alert safety terms must be accepted to create a child account",
                error_code="RED_ALERT_REQUIRED",
            )

        # Nothing is written until the token or invite checks out
        approval, invite = await self._resolve_authorization(parent, data)
        account = await self._promote_to_parent(parent, account)

        username = data.username.strip().lower()
        if await self.profiles.username_exists(username):
            raise DuplicateResourceError("Username is already taken")

        child_email = (
            normalize_email(data.child_email)
            if data.child_email
            else f"{username}@{settings.CHILD_EMAIL_DOMAIN}"
        )
        if await self.users.email_exists(child_email):
            raise DuplicateResourceError("Email already registered")

        second_parent_email = self._second_parent_email(parent, data, approval)
        if second_parent_email:
            _, second_account = await self.users.get_with_account(second_parent_email)
            if second_account is not None and second_account.role == AccountRole.CHILD.value:
                raise ParentEmailRequiredError()

        log_ids = {
            "parent_id": str(parent.id),
            "approval_id": str(approval.id) if approval else None,
            "invite_id": str(invite.id) if invite else None,
        }
        try:
            child, joined_cliq_id = await self._write_bundle(
                parent=parent,
                parent_account=account,
                data=data,
                username=username,
                child_email=child_email,
                second_parent_email=second_parent_email,
                approval=approval,
                invite=invite,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        except CliqstrException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(
                "child_account_creation_failed",
                **log_ids,
                error=str(e),
                exc_info=True,
            )
            raise ChildAccountCreationError() from e

        if second_parent_email:
            await self.notifications.send_parent_link_invite(
                second_parent_email, username, account.full_name or parent.email
            )

        logger.info(
            "child_account_created",
            child_id=str(child.id),
            parent_id=str(parent.id),
            source="approval" if approval else "invite",
            joined_cliq_id=str(joined_cliq_id) if joined_cliq_id else None,
        )
        return {
            "ok": True,
            "child_id": child.id,
            "username": username,
            "joined_cliq_id": joined_cliq_id,
            "redirect_url": PARENTS_HQ_SUCCESS_PATH,
        }

    # ═══════════════════════════════════════════════════════════════════════════
    # CHECKS
    # ═══════════════════════════════════════════════════════════════════════════

    async def _require_adult_account(self, parent: User) -> Account:
        account = await self.accounts.get_by_user_id(parent.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")
        if account.role == AccountRole.CHILD.value:
            raise AuthorizationError("Child accounts cannot create child accounts")
        return account

    async def _promote_to_parent(self, parent: User, account: Account) -> Account:
        """Adult callers become Parents; the plan is checked afterwards."""
        if account.role == AccountRole.ADULT.value:
            account, _ = await AuthService(self.session).upgrade_to_parent(parent)
        if not account.plan:
            raise PlanRequiredError()
        return account

    async def _resolve_authorization(
        self,
        parent: User,
        data: CreateChildRequest,
    ) -> tuple[Optional[ParentApproval], Optional[Invite]]:
        if data.approval_token:
            approval = await ParentApprovalService(self.session).require_live(data.approval_token)
            if approval.parent_email != parent.email:
                raise AuthorizationError(
                    "This approval was sent to a different parent",
                    error_code="EMAIL_MISMATCH",
                )
            invite = await self.invites.get(approval.invite_id) if approval.invite_id else None
            return approval, invite

        invite = await self.invites.get_by_join_code(data.invite_code.strip())
        if invite is None:
            raise InviteNotFoundError(data.invite_code)
        if invite.invite_type != InviteType.CHILD.value:
            raise ValidationError(
                "Only child invites can be used to create a child account",
                details={"reason": "not_child_invite"},
                error_code="INVALID_INVITE",
            )
        if invite.used or invite.status not in (InviteStatus.PENDING.value, InviteStatus.ACCEPTED.value):
            raise InvalidTokenError("This invite has already been used", reason="used")
        if invite.expires_at is not None and invite.expires_at <= utc_now():
            raise InvalidTokenError("This invite has expired", reason="expired")
        if invite.target_email_normalized != parent.email:
            raise AuthorizationError(
                "This invite was sent to a different parent",
                error_code="EMAIL_MISMATCH",
            )

        approval = await self.approvals.get_by_invite_id(invite.id)
        if approval is not None:
            approval = await ParentApprovalService(self.session).require_live(approval.approval_token)
        return approval, invite

    @staticmethod
    def _second_parent_email(
        parent: User,
        data: CreateChildRequest,
        approval: Optional[ParentApproval],
    ) -> Optional[str]:
        email = data.second_parent_email or (approval.second_parent_email if approval else None)
        if not email:
            return None
        email = normalize_email(email)
        return None if email == parent.email else email

    # ═══════════════════════════════════════════════════════════════════════════
    # BUNDLE
    # ═══════════════════════════════════════════════════════════════════════════

    async def _write_bundle(
        self,
        *,
        parent: User,
        parent_account: Account,
        data: CreateChildRequest,
        username: str,
        child_email: str,
        second_parent_email: Optional[str],
        approval: Optional[ParentApproval],
        invite: Optional[Invite],
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> tuple[User, Optional[UUID]]:
        now = utc_now()

        child = await self.users.create(
            email=child_email,
            password_hash=SecurityUtils.hash_password(data.password),
            is_verified=True,
        )
        await self.accounts.create(
            user_id=child.id,
            role=AccountRole.CHILD.value,
            is_approved=True,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            birthdate=data.birthdate,
            setup_stage=SetupStage.COMPLETED.value,
        )

        settings_values = {
            "is_silently_monitored": data.silent_monitoring,
            **data.permissions.as_updates(),
        }
        profile = await self.profiles.create(
            user_id=child.id,
            username=username,
            display_name=data.first_name.strip(),
            show_year=False,
            ai_moderation_level=settings_values.get(
                "ai_moderation_level", AiModerationLevel.STRICT.value
            ),
        )
        await self.child_settings.create(profile_id=profile.id, **settings_values)

        await self.consents.create(
            parent_id=parent.id,
            child_id=child.id,
            red_alert_accepted=True,
            silent_monitoring_enabled=settings_values["is_silently_monitored"],
            ip_address=ip_address,
            user_agent=user_agent,
            consented_at=now,
        )
        await self.audit.create(
            parent_id=parent.id,
            child_id=child.id,
            action=AuditAction.APPROVE_CHILD.value,
            new_value={
                "username": username,
                "approval_id": str(approval.id) if approval else None,
                "invite_id": str(invite.id) if invite else None,
                "settings": settings_values,
            },
            ip_address=ip_address,
            user_agent=user_agent,
        )

        await self._link_parents(parent, child, approval, second_parent_email)
        await PlanService(self.session).add_member(parent, child.id)

        joined_cliq_id = await self._join_inviting_cliq(child, approval, invite)

        if approval is not None:
            approval.status = ApprovalStatus.APPROVED.value
            approval.approved_at = approval.approved_at or now
            approval.completed_at = now
            approval.child_id = child.id
            await self.approvals.save(approval)

        if invite is not None:
            invite.used = True
            invite.status = InviteStatus.COMPLETED.value
            invite.invited_user_id = child.id
            invite.accepted_at = invite.accepted_at or now
            invite.completed_at = now
            await self.invites.save(invite)

        parent_account.setup_stage = SetupStage.COMPLETED.value
        await self.accounts.save(parent_account)
        return child, joined_cliq_id

    async def _link_parents(
        self,
        parent: User,
        child: User,
        approval: Optional[ParentApproval],
        second_parent_email: Optional[str],
    ) -> None:
        await self.links.create(
            parent_id=parent.id,
            email=parent.email,
            child_id=child.id,
            type="parent",
            role=ParentLinkRole.PRIMARY.value,
            permissions=dict(FULL_PARENT_PERMISSIONS),
            mobile_number=approval.parent_mobile if approval else None,
            second_parent_email=second_parent_email,
        )

        if second_parent_email:
            second_parent = await self.users.get_by_email(second_parent_email)
            await self.links.create(
                parent_id=second_parent.id if second_parent else None,
                email=second_parent_email,
                child_id=child.id,
                type="parent",
                role=ParentLinkRole.SECONDARY.value,
                permissions=dict(SECONDARY_PARENT_PERMISSIONS),
            )

    async def _join_inviting_cliq(
        self,
        child: User,
        approval: Optional[ParentApproval],
        invite: Optional[Invite],
    ) -> Optional[UUID]:
        cliq_id = (approval.cliq_id if approval else None) or (invite.cliq_id if invite else None)
        if cliq_id is None or await self.cliqs.get_active(cliq_id) is None:
            return None
        await self.memberships.get_or_create(child.id, cliq_id)
        return cliq_id
