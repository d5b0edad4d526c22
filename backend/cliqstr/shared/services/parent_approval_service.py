"""
Parent Approval Service

Tracks parent approvals for child accounts and computes where a parent is
in the onboarding flow.

Approval Lifecycle:
===================
    ┌─────────┐  parent signs up / in   ┌──────────┐  child created  ┌───────────┐
    │ pending │ ──────────────────────→ │ approved │ ──────────────→ │ completed │
    └─────────┘                         └──────────┘                 └───────────┘
         │  │                                │                   (completed_at set,
         │  └── expires_at passed ──→ expired ←┘                   status approved)
         └── parent declines ──→ declined

Onboarding State (GET /parent-approval/state):
==============================================
One server-side decision per token, checked in this order:

    1. declined                         → DECLINED      (declined page)
    2. expired                          → EXPIRED       (help page)
    3. child already created            → COMPLETE      (Parents HQ success)
    4. no account for parent email      → PARENT_SIGNUP (/parent-approval?token=T)
    5. Adult account                    → SIGN_IN       (sign-in + upgrade)
    6. Child account                    → BLOCKED       (help page)
    7. Parent/Admin without a plan      → CHOOSE_PLAN   (/choose-plan?approvalToken=T)
    8. Parent/Admin with a plan         → CREATE_CHILD  (/parents/hq?approvalToken=T)
"""

from datetime import date, timedelta
from typing import Any, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    ParentEmailRequiredError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger, mask_email
from cliqstr.shared.db.session import AsyncSessionLocal
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.cliq import Cliq
from cliqstr.shared.models.enums import (
    AccountRole,
    ApprovalContext,
    ApprovalStatus,
    InviteStatus,
    OnboardingStep,
    ParentState,
)
from cliqstr.shared.models.invite import Invite
from cliqstr.shared.models.parent import ParentApproval
from cliqstr.shared.models.user import Account, User
from cliqstr.shared.repositories import (
    AccountRepository,
    InviteRepository,
    ParentApprovalRepository,
    UserRepository,
)
from cliqstr.shared.services.auth_service import AuthService, issue_session
from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.utils.constants import (
    APPROVAL_DECLINED_PATH,
    APPROVAL_HELP_PATH,
    CHOOSE_PLAN_PATH,
    PARENT_APPROVAL_PATH,
    PARENTS_HQ_PATH,
    PARENTS_HQ_SUCCESS_PATH,
    SIGN_IN_PATH,
)
from cliqstr.shared.utils.security import SecurityUtils, calculate_age, normalize_email

logger = get_logger("cliqstr.parent_approval")

PARENT_ROLES = {AccountRole.PARENT.value, AccountRole.ADMIN.value}


def approval_url(path: str, token: str) -> str:
    """Web-app path that carries an approval token forward."""
    return f"{path}?approvalToken={token}"


class ParentApprovalService:
    """
    Service for parent approvals and the onboarding router.

    Attributes:
        session: Database session
        repo: ParentApprovalRepository instance
        notifications: Outbound email
    """

    def __init__(
        self,
        session: AsyncSession,
        notifications: Optional[NotificationService] = None,
    ) -> None:
        self.session = session
        self.repo = ParentApprovalRepository(session)
        self.users = UserRepository(session)
        self.accounts = AccountRepository(session)
        self.invites = InviteRepository(session)
        self.notifications = notifications or NotificationService()

    # ═══════════════════════════════════════════════════════════════════════════
    # CREATION
    # ═══════════════════════════════════════════════════════════════════════════

    async def classify_parent(self, parent_email: str) -> Tuple[ParentState, Optional[User]]:
        """
        Look up the parent email against existing accounts.

        Raises:
            ParentEmailRequiredError: The address belongs to a Child account
        """
        user, account = await self.users.get_with_account(parent_email)
        if user is None:
            return ParentState.NEW, None
        if account is not None and account.role == AccountRole.CHILD.value:
            raise ParentEmailRequiredError()
        if account is not None and account.role in PARENT_ROLES:
            return ParentState.EXISTING_PARENT, user
        return ParentState.EXISTING_ADULT, user

    async def create_approval(
        self,
        *,
        context: ApprovalContext,
        child_first_name: str,
        child_last_name: str,
        child_birthdate: date,
        parent_email: str,
        child_email: Optional[str] = None,
        parent_mobile: Optional[str] = None,
        second_parent_email: Optional[str] = None,
        invite: Optional[Invite] = None,
        cliq: Optional[Cliq] = None,
        inviter_name: Optional[str] = None,
    ) -> ParentApproval:
        """
        Create an approval and email the parent the approval link.

        A failed email is logged and does not undo the approval; the parent
        can ask for the link again from the help page.

        Raises:
            ParentEmailRequiredError: parent_email belongs to a child account
        """
        parent_email = normalize_email(parent_email)
        parent_state, parent_user = await self.classify_parent(parent_email)

        approval = await self.repo.create(
            approval_token=SecurityUtils.generate_token(),
            child_first_name=child_first_name.strip(),
            child_last_name=child_last_name.strip(),
            child_birthdate=child_birthdate,
            child_email=normalize_email(child_email) if child_email else None,
            parent_email=parent_email,
            parent_state=parent_state.value,
            existing_parent_id=parent_user.id if parent_user else None,
            parent_mobile=parent_mobile,
            second_parent_email=normalize_email(second_parent_email) if second_parent_email else None,
            context=context.value,
            invite_id=invite.id if invite else None,
            cliq_id=cliq.id if cliq else None,
            cliq_name=cliq.name if cliq else None,
            inviter_name=inviter_name,
            status=ApprovalStatus.PENDING.value,
            expires_at=utc_now() + timedelta(hours=settings.APPROVAL_TOKEN_EXPIRE_HOURS),
        )

        email_sent = await self.notifications.send_approval_request(approval)
        logger.info(
            "parent_approval_created",
            approval_id=str(approval.id),
            context=approval.context,
            parent_state=approval.parent_state,
            parent_email=mask_email(parent_email),
            email_sent=email_sent,
        )
        return approval

    # ═══════════════════════════════════════════════════════════════════════════
    # TOKEN CHECKS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_by_token(self, token: str) -> ParentApproval:
        approval = await self.repo.get_by_token(token) if token else None
        if approval is None:
            raise InvalidTokenError("This approval link is not valid", reason="not_found")
        return approval

    async def _expire_if_due(self, approval: ParentApproval) -> None:
        """
        Mark a pending or approved-but-unused approval expired once past expires_at.

        The new status is written in its own short transaction, so it is kept
        even when the request that noticed the expiry fails and rolls back.
        """
        if (
            approval.status in (ApprovalStatus.PENDING.value, ApprovalStatus.APPROVED.value)
            and not approval.is_completed
            and approval.expires_at <= utc_now()
        ):
            async with AsyncSessionLocal() as session:
                await session.execute(
                    update(ParentApproval)
                    .where(ParentApproval.id == approval.id)
                    .values(status=ApprovalStatus.EXPIRED.value)
                )
                await session.commit()
            set_committed_value(approval, "status", ApprovalStatus.EXPIRED.value)
            logger.info("parent_approval_expired", approval_id=str(approval.id))

    @staticmethod
    def _expired_error() -> InvalidTokenError:
        return InvalidTokenError("This approval link has expired", reason="expired")

    async def check(self, token: str) -> ParentApproval:
        """
        Approval behind a link, for display.

        Raises:
            InvalidTokenError: Unknown or expired token
        """
        approval = await self.get_by_token(token)
        await self._expire_if_due(approval)
        if approval.status == ApprovalStatus.EXPIRED.value:
            raise self._expired_error()
        return approval

    async def require_live(self, token: str) -> ParentApproval:
        """
        Approval that can still move forward.

        Raises:
            InvalidTokenError: Unknown, expired, declined or already used
        """
        approval = await self.get_by_token(token)
        await self._expire_if_due(approval)

        if approval.status == ApprovalStatus.EXPIRED.value:
            raise self._expired_error()
        if approval.status == ApprovalStatus.DECLINED.value:
            raise InvalidTokenError("This request was declined", reason="declined")
        if approval.is_completed:
            raise InvalidTokenError("This approval link has already been used", reason="completed")
        return approval

    # ═══════════════════════════════════════════════════════════════════════════
    # ONBOARDING STATE
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_state(self, token: str, current_user: Optional[User] = None) -> dict[str, Any]:
        """
        Compute the onboarding step for an approval token.

        Returns a dict matching OnboardingStateResponse.
        """
        approval = await self.get_by_token(token)
        await self._expire_if_due(approval)

        state: dict[str, Any] = {
            "approval": approval,
            "parent_account_exists": False,
            "parent_role": None,
            "has_plan": False,
            "signed_in_as_parent": bool(
                current_user and current_user.email == approval.parent_email
            ),
        }

        if approval.status == ApprovalStatus.DECLINED.value:
            return {**state, "step": OnboardingStep.DECLINED, "redirect_url": APPROVAL_DECLINED_PATH}
        if approval.status == ApprovalStatus.EXPIRED.value:
            return {
                **state,
                "step": OnboardingStep.EXPIRED,
                "redirect_url": f"{APPROVAL_HELP_PATH}?reason=expired",
            }
        if approval.is_completed:
            return {**state, "step": OnboardingStep.COMPLETE, "redirect_url": PARENTS_HQ_SUCCESS_PATH}

        user, account = await self.users.get_with_account(approval.parent_email)
        if user is None:
            return {
                **state,
                "step": OnboardingStep.PARENT_SIGNUP,
                "redirect_url": f"{PARENT_APPROVAL_PATH}?token={token}",
            }

        state["parent_account_exists"] = True
        state["parent_role"] = account.role if account else None
        state["has_plan"] = bool(account and account.plan)

        step, redirect_url = self._step_for_account(account, token)
        return {**state, "step": step, "redirect_url": redirect_url}

    @staticmethod
    def _step_for_account(account: Optional[Account], token: str) -> Tuple[OnboardingStep, str]:
        """Steps 5-8 of the onboarding order, once the parent has an account."""
        if account is None or account.role == AccountRole.ADULT.value:
            return (
                OnboardingStep.SIGN_IN,
                f"{SIGN_IN_PATH}?approvalToken={token}&upgrade=parent",
            )
        if account.role == AccountRole.CHILD.value:
            return OnboardingStep.BLOCKED, f"{APPROVAL_HELP_PATH}?reason=child_account"
        if not account.plan:
            return OnboardingStep.CHOOSE_PLAN, approval_url(CHOOSE_PLAN_PATH, token)
        return OnboardingStep.CREATE_CHILD, approval_url(PARENTS_HQ_PATH, token)

    # ═══════════════════════════════════════════════════════════════════════════
    # PARENT SIGN-UP / SIGN-IN
    # ═══════════════════════════════════════════════════════════════════════════

    async def signup_parent(
        self,
        *,
        token: str,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        birthdate: date,
    ) -> dict[str, Any]:
        """
        Create a Parent account from an approval link.

        Raises:
            InvalidTokenError: Token cannot be used
            ValidationError: Email mismatch or parent under ADULT_MIN_AGE
            ConflictError: An account already exists for the email
        """
        approval = await self.require_live(token)
        email = normalize_email(email)

        if email != approval.parent_email:
            raise ValidationError(
                "Use the email address the approval request was sent to",
                error_code="EMAIL_MISMATCH",
            )
        if calculate_age(birthdate) < settings.ADULT_MIN_AGE:
            raise ValidationError(
                f"Parents must be {settings.ADULT_MIN_AGE} or older",
                error_code="UNDERAGE",
            )
        if await self.users.email_exists(email):
            raise ConflictError(
                "An account already exists for this email. Sign in to continue.",
                details={"redirect_url": f"{SIGN_IN_PATH}?approvalToken={token}&upgrade=parent"},
            )

        user, account = await AuthService(self.session).create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            birthdate=birthdate,
            role=AccountRole.PARENT,
            is_approved=True,
        )
        await self._mark_approved(approval, user)
        access_token, expires_in = issue_session(user)

        logger.info(
            "parent_approval_signup_completed",
            approval_id=str(approval.id),
            user_id=str(user.id),
        )
        return {
            "user": user,
            "account": account,
            "access_token": access_token,
            "expires_in": expires_in,
            "approval": approval,
            "redirect_url": approval_url(CHOOSE_PLAN_PATH, token),
        }

    async def sign_in_parent(self, *, token: str, email: str, password: str) -> dict[str, Any]:
        """
        Existing adult or parent signs in from an approval link.

        Adult accounts are upgraded to Parent.

        Raises:
            InvalidTokenError: Token cannot be used
            AuthenticationError: Bad credentials
            AuthorizationError: Signed in as someone other than the addressed
                parent, or as a child
        """
        approval = await self.require_live(token)
        auth = AuthService(self.session)
        user, account, access_token, expires_in = await auth.sign_in(email, password)

        if user.email != approval.parent_email:
            raise AuthorizationError(
                "Sign in with the account the approval request was sent to",
                error_code="EMAIL_MISMATCH",
            )
        if account.role == AccountRole.CHILD.value:
            raise AuthorizationError("Child accounts cannot approve children")
        if account.role == AccountRole.ADULT.value:
            account, _ = await auth.upgrade_to_parent(user)

        await self._mark_approved(approval, user)
        _, redirect_url = self._step_for_account(account, token)

        logger.info(
            "parent_approval_signin_completed",
            approval_id=str(approval.id),
            user_id=str(user.id),
        )
        return {
            "user": user,
            "account": account,
            "access_token": access_token,
            "expires_in": expires_in,
            "approval": approval,
            "redirect_url": redirect_url,
        }

    async def _mark_approved(self, approval: ParentApproval, parent: User) -> None:
        approval.status = ApprovalStatus.APPROVED.value
        approval.approved_at = approval.approved_at or utc_now()
        approval.existing_parent_id = parent.id
        await self.repo.save(approval)

    # ═══════════════════════════════════════════════════════════════════════════
    # DECLINE / RESUME / RESEND
    # ═══════════════════════════════════════════════════════════════════════════

    async def decline(self, token: str) -> ParentApproval:
        """
        Parent declines from the link. The linked invite, if any, is canceled.

        Raises:
            InvalidTokenError: Unknown or expired token
            ConflictError: Already declined or already used
        """
        approval = await self.get_by_token(token)
        await self._expire_if_due(approval)

        if approval.status == ApprovalStatus.EXPIRED.value:
            raise self._expired_error()
        if approval.status == ApprovalStatus.DECLINED.value or approval.is_completed:
            raise ConflictError("This request can no longer be declined")

        approval.status = ApprovalStatus.DECLINED.value
        approval.declined_at = utc_now()
        await self.repo.save(approval)

        if approval.invite_id:
            invite = await self.invites.get(approval.invite_id)
            if invite is not None and invite.status != InviteStatus.COMPLETED.value:
                invite.status = InviteStatus.CANCELED.value
                invite.declined_reason = "parent_declined"
                await self.invites.save(invite)

        logger.info("parent_approval_declined", approval_id=str(approval.id))
        return approval

    async def resume(self, approval_id: UUID, user: User) -> Tuple[ParentApproval, str]:
        """
        Signed-in parent picks an approval back up.

        Raises:
            NotFoundError: Unknown approval
            AuthorizationError: Approval addressed to a different email
            InvalidTokenError: Approval can no longer move forward
        """
        approval = await self.repo.get(approval_id)
        if approval is None:
            raise NotFoundError("Approval", str(approval_id))
        if approval.parent_email != user.email:
            raise AuthorizationError("This approval was sent to a different parent")

        approval = await self.require_live(approval.approval_token)
        account = await self.accounts.get_by_user_id(user.id)
        _, redirect_url = self._step_for_account(account, approval.approval_token)
        return approval, redirect_url

    async def resend_link(self, email: str) -> None:
        """Email the newest live approval link. Silent when there is none."""
        email = normalize_email(email)
        approvals = await self.repo.list_live_for_email(email, utc_now())
        if not approvals:
            logger.info("approval_resend_no_match", email=mask_email(email))
            return

        sent = await self.notifications.send_resume_link(approvals[0])
        logger.info(
            "approval_link_resent",
            approval_id=str(approvals[0].id),
            email_sent=sent,
        )

    async def list_pending_for_parent(self, user: User) -> list[ParentApproval]:
        """
        Live approvals addressed to a parent.

        Raises:
            AuthorizationError: Caller is not a Parent or Admin
        """
        account = await self.accounts.get_by_user_id(user.id)
        if account is None or account.role not in PARENT_ROLES:
            raise AuthorizationError("Only parents can view pending approvals")
        return await self.repo.list_live_for_email(user.email, utc_now())
