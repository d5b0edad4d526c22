"""
Invite Service

Issues cliq invites and takes them through validation, acceptance and
decline.

Target Classification:
======================
The target email is looked up before anything is written:

    ┌──────────────────────┬──────────────────────────────┬───────────────────────────┐
    │ Lookup result        │ target_state                 │ Outcome                   │
    ├──────────────────────┼──────────────────────────────┼───────────────────────────┤
    │ no user              │ new                          │ invite sent               │
    │ Parent account       │ existing_parent              │ invite sent               │
    │ Adult / Admin        │ existing_user_non_parent     │ invite sent               │
    │ Child account        │ invalid_child                │ ParentEmailRequiredError, │
    │                      │                              │ nothing stored or sent    │
    └──────────────────────┴──────────────────────────────┴───────────────────────────┘

Adult invites email the invitee an /invite/accept?code= link. Child invites
go to the child's parent: a ParentApproval (context child_invite) is created
with the invite and the parent gets the /parent-approval?token= link.
"""

from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CliqNotFoundError,
    ConflictError,
    InviteNotFoundError,
    ParentEmailRequiredError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger, mask_email
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.enums import (
    AccountRole,
    ApprovalContext,
    ApprovalStatus,
    InviteStatus,
    InviteType,
    TargetState,
)
from cliqstr.shared.models.invite import Invite
from cliqstr.shared.models.user import Account, User
from cliqstr.shared.repositories import (
    AccountRepository,
    ChildSettingsRepository,
    CliqRepository,
    InviteRepository,
    MembershipRepository,
    ParentApprovalRepository,
    ParentConsentRepository,
    UserRepository,
)
from cliqstr.shared.schemas.invite import InviteCreateRequest
from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.services.parent_approval_service import ParentApprovalService
from cliqstr.shared.utils.constants import CHOOSE_PLAN_PATH
from cliqstr.shared.utils.security import SecurityUtils, normalize_email

logger = get_logger("cliqstr.invites")

JOIN_CODE_ATTEMPTS = 5


def display_name(account: Optional[Account]) -> str:
    if account is not None and account.full_name:
        return account.full_name
    return "A Cliqstr member"


class InviteService:
    """
    Service for cliq invites.

    Attributes:
        session: Database session
        repo: InviteRepository instance
        notifications: Outbound email
    """

    def __init__(
        self,
        session: AsyncSession,
        notifications: Optional[NotificationService] = None,
    ) -> None:
        self.session = session
        self.repo = InviteRepository(session)
        self.users = UserRepository(session)
        self.accounts = AccountRepository(session)
        self.cliqs = CliqRepository(session)
        self.memberships = MembershipRepository(session)
        self.child_settings = ChildSettingsRepository(session)
        self.consents = ParentConsentRepository(session)
        self.approvals = ParentApprovalRepository(session)
        self.notifications = notifications or NotificationService()

    # ═══════════════════════════════════════════════════════════════════════════
    # CREATE
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_invite(self, inviter: User, data: InviteCreateRequest) -> dict[str, Any]:
        """
        Create an invite and send the matching email.

        Returns:
            Dict with ok, invite_id, join_code, target_state, approval_id

        Raises:
            CliqNotFoundError: Cliq missing or deleted
            AuthorizationError: Inviter not a member, or a child without
                invite permissions
            ParentEmailRequiredError: Target email belongs to a child account
            ValidationError: Missing child details or suspended target
        """
        account = await self.accounts.get_by_user_id(inviter.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")

        cliq = await self.cliqs.get_active(data.cliq_id)
        if cliq is None:
            raise CliqNotFoundError(str(data.cliq_id))
        if await self.memberships.get_membership(inviter.id, cliq.id) is None:
            raise AuthorizationError("You must be a member of this cliq to invite others")

        if account.role == AccountRole.CHILD.value:
            await self._check_child_inviter(inviter, data.invite_type)

        if data.invite_type == InviteType.CHILD and not (
            data.friend_first_name and data.friend_last_name and data.child_birthdate
        ):
            raise ValidationError(
                "Child invites need the child's first name, last name and birthdate",
                error_code="CHILD_DETAILS_REQUIRED",
            )

        target_email = normalize_email(data.target_email)
        target_state, target_user = await self._classify_target(target_email)

        if (
            data.invite_type == InviteType.ADULT
            and target_user is not None
            and await self.memberships.get_membership(target_user.id, cliq.id) is not None
        ):
            raise ConflictError("This person is already a member of the cliq")

        now = utc_now()
        invite = await self.repo.create(
            token=SecurityUtils.generate_token(),
            join_code=await self._new_join_code(),
            inviter_id=inviter.id,
            cliq_id=cliq.id,
            invitee_email=target_email,
            target_email_normalized=target_email,
            target_user_id=target_user.id if target_user else None,
            target_state=target_state.value,
            parent_account_exists=target_state == TargetState.EXISTING_PARENT,
            invite_type=data.invite_type.value,
            friend_first_name=data.friend_first_name,
            friend_last_name=data.friend_last_name,
            child_birthdate=data.child_birthdate,
            invite_note=data.invite_note,
            status=InviteStatus.PENDING.value,
            expires_at=now + timedelta(days=settings.INVITE_EXPIRE_DAYS),
        )

        inviter_name = display_name(account)
        approval_id = None
        if data.invite_type == InviteType.CHILD:
            approval = await ParentApprovalService(self.session, self.notifications).create_approval(
                context=ApprovalContext.CHILD_INVITE,
                child_first_name=data.friend_first_name,
                child_last_name=data.friend_last_name,
                child_birthdate=data.child_birthdate,
                parent_email=target_email,
                invite=invite,
                cliq=cliq,
                inviter_name=inviter_name,
            )
            approval_id = approval.id
            email_sent = None
        else:
            email_sent = await self.notifications.send_invite(invite, cliq.name, inviter_name)

        logger.info(
            "invite_created",
            invite_id=str(invite.id),
            cliq_id=str(cliq.id),
            invite_type=invite.invite_type,
            target_state=invite.target_state,
            target=mask_email(target_email),
            email_sent=email_sent,
        )
        return {
            "ok": True,
            "invite_id": invite.id,
            "join_code": invite.join_code,
            "target_state": target_state,
            "approval_id": approval_id,
        }

    async def _check_child_inviter(self, inviter: User, invite_type: InviteType) -> None:
        settings_row = await self.child_settings.get_for_child(inviter.id)
        allowed = settings_row is not None and settings_row.can_send_invites
        if allowed and invite_type == InviteType.CHILD:
            allowed = settings_row.can_invite_children
        elif allowed:
            allowed = settings_row.can_invite_adults

        if not allowed:
            raise AuthorizationError(
                "Your parent has not allowed you to send this kind of invite",
                error_code="INVITE_NOT_PERMITTED",
            )
        if not await self.consents.has_valid_consent(inviter.id):
            raise AuthorizationError(
                "A parent must accept the safety terms before you can invite others",
                error_code="PARENT_CONSENT_REQUIRED",
            )

    async def _classify_target(self, email: str) -> tuple[TargetState, Optional[User]]:
        user, account = await self.users.get_with_account(email)
        if user is None:
            return TargetState.NEW, None

        if account is not None and account.role == AccountRole.CHILD.value:
            logger.info("invite_rejected_child_target", target=mask_email(email))
            raise ParentEmailRequiredError()
        if account is not None and account.suspended:
            raise ValidationError("This account cannot receive invites", error_code="TARGET_SUSPENDED")
        if account is not None and account.role == AccountRole.PARENT.value:
            return TargetState.EXISTING_PARENT, user
        return TargetState.EXISTING_USER_NON_PARENT, user

    async def _new_join_code(self) -> str:
        for _ in range(JOIN_CODE_ATTEMPTS):
            code = SecurityUtils.generate_join_code()
            if not await self.repo.join_code_exists(code):
                return code
        raise ConflictError("Could not allocate an invite code, please retry")

    # ═══════════════════════════════════════════════════════════════════════════
    # VALIDATE / ACCEPT / DECLINE
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_usable(self, code: Optional[str]) -> Invite:
        """
        Invite behind a code, if it can still be used.

        Raises:
            ValidationError: missing_code, expired, not_pending or used
            InviteNotFoundError: Unknown code
        """
        code = (code or "").strip()
        if not code:
            raise self._invalid("An invite code is required", "missing_code")

        invite = await self.repo.get_by_join_code(code)
        if invite is None:
            raise InviteNotFoundError(code)

        if invite.expires_at is not None and invite.expires_at <= utc_now():
            raise self._invalid("This invite has expired", "expired")
        if invite.status not in (InviteStatus.PENDING.value, InviteStatus.ACCEPTED.value):
            raise self._invalid("This invite is no longer pending", "not_pending")
        if invite.used:
            raise self._invalid("This invite has already been used", "used")
        return invite

    @staticmethod
    def _invalid(message: str, reason: str) -> ValidationError:
        return ValidationError(message, details={"reason": reason}, error_code="INVALID_INVITE")

    async def validate(self, code: Optional[str]) -> dict[str, Any]:
        invite = await self.get_usable(code)
        cliq = await self.cliqs.get(invite.cliq_id)
        inviter_account = await self.accounts.get_by_user_id(invite.inviter_id)
        return {
            "valid": True,
            "invite_type": invite.invite_type,
            "cliq_id": invite.cliq_id,
            "cliq_name": cliq.name if cliq else None,
            "inviter_name": display_name(inviter_account),
            "recipient_email": invite.invitee_email,
            "expires_at": invite.expires_at,
        }

    async def accept(self, user: User, code: str) -> dict[str, Any]:
        """
        Signed-in invitee accepts an adult invite.

        Without a plan the invite waits in `accepted` and the cliq is joined
        by auto-join once a plan is chosen.

        Raises:
            ValidationError: Child invite, or invite not usable
            AuthorizationError: Invite addressed to another email
        """
        invite = await self.get_usable(code)
        if invite.invite_type == InviteType.CHILD.value:
            raise self._invalid(
                "Child invites are accepted by a parent through the approval link",
                "child_invite",
            )
        if invite.target_email_normalized != user.email:
            raise AuthorizationError("This invite was sent to a different email address")

        account = await self.accounts.get_by_user_id(user.id)
        now = utc_now()
        invite.invited_user_id = user.id
        invite.accepted_at = invite.accepted_at or now

        if account is None or not account.plan:
            invite.status = InviteStatus.ACCEPTED.value
            await self.repo.save(invite)
            logger.info("invite_accepted_plan_required", invite_id=str(invite.id), user_id=str(user.id))
            return {
                "status": invite.status,
                "cliq_id": invite.cliq_id,
                "joined": False,
                "requires_plan": True,
                "redirect_url": CHOOSE_PLAN_PATH,
            }

        await self.memberships.get_or_create(user.id, invite.cliq_id)
        invite.status = InviteStatus.COMPLETED.value
        invite.used = True
        invite.completed_at = now
        await self.repo.save(invite)

        logger.info("invite_accepted", invite_id=str(invite.id), user_id=str(user.id))
        return {
            "status": invite.status,
            "cliq_id": invite.cliq_id,
            "joined": True,
            "requires_plan": False,
            "redirect_url": f"/cliqs/{invite.cliq_id}",
        }

    async def decline(self, code: str, reason: Optional[str] = None) -> Invite:
        """
        Cancel an invite. A linked, unused approval is declined with it.

        Raises:
            InviteNotFoundError: Unknown code
            ConflictError: Invite already completed or canceled
        """
        invite = await self.repo.get_by_join_code(code.strip())
        if invite is None:
            raise InviteNotFoundError(code)
        if invite.status in (InviteStatus.COMPLETED.value, InviteStatus.CANCELED.value):
            raise ConflictError("This invite can no longer be declined")

        invite.status = InviteStatus.CANCELED.value
        invite.declined_reason = reason
        await self.repo.save(invite)

        approval = await self.approvals.get_by_invite_id(invite.id)
        if approval is not None and not approval.is_completed and approval.status in (
            ApprovalStatus.PENDING.value,
            ApprovalStatus.APPROVED.value,
        ):
            approval.status = ApprovalStatus.DECLINED.value
            approval.declined_at = utc_now()
            await self.approvals.save(approval)

        logger.info("invite_declined", invite_id=str(invite.id))
        return invite

    async def list_pending(self, user: User) -> list[Invite]:
        return await self.repo.list_pending_adult_for_email(user.email, utc_now())
