"""
Plan Service

Plan selection, member slots and invite auto-join.

Select Flow:
============
    POST /plans/select {plan, billing_cycle, approval_token?}
        │
        ├─ plan enabled?                      (ENABLED_PLANS)
        ├─ approval token live + addressed to caller (when given)
        ├─ Account.plan / setup_stage
        ├─ Plan (one per owner) + owner PlanMembership
        └─ auto-join: pending adult invites for the caller's email
              cliq ids deduplicated, existing memberships skipped,
              invites marked completed

Setup stage after selection:
    with approval token      → plan_selected (next: create the child)
    Adult without approval   → completed
    anyone else              → plan_selected
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    PlanRequiredError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.enums import (
    AccountRole,
    InviteStatus,
    PlanMemberRole,
    PlanMemberStatus,
    SetupStage,
)
from cliqstr.shared.models.plan import Plan
from cliqstr.shared.models.user import Account, User
from cliqstr.shared.repositories import (
    AccountRepository,
    CliqRepository,
    InviteRepository,
    MembershipRepository,
    PlanMembershipRepository,
    PlanRepository,
)
from cliqstr.shared.services.parent_approval_service import ParentApprovalService, approval_url
from cliqstr.shared.utils.constants import PARENTS_HQ_PATH, PLAN_CATALOG, PlanDefinition

logger = get_logger("cliqstr.plans")

DASHBOARD_PATH = "/my-cliqs-dashboard"


def enabled_plans() -> list[PlanDefinition]:
    """Catalog entries that can currently be selected, in catalog order."""
    enabled = {key.lower() for key in settings.ENABLED_PLANS}
    return [plan for key, plan in PLAN_CATALOG.items() if key in enabled]


class PlanService:
    """
    Service for plan selection and membership bookkeeping.

    Attributes:
        session: Database session
        repo: PlanRepository instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = PlanRepository(session)
        self.plan_members = PlanMembershipRepository(session)
        self.accounts = AccountRepository(session)
        self.invites = InviteRepository(session)
        self.cliqs = CliqRepository(session)
        self.memberships = MembershipRepository(session)

    async def select_plan(
        self,
        user: User,
        plan_key: str,
        billing_cycle: str = "monthly",
        approval_token: Optional[str] = None,
    ) -> dict:
        """
        Record a plan choice and auto-join pending invites.

        Returns:
            Dict with plan, setup_stage, joined_cliq_ids, redirect_url

        Raises:
            ValidationError: Plan unknown or not enabled
            AuthorizationError: Child caller, or approval addressed elsewhere
            InvalidTokenError: Approval token cannot be used
        """
        definition = self._get_definition(plan_key)

        account = await self.accounts.get_by_user_id(user.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")
        if account.role == AccountRole.CHILD.value:
            raise AuthorizationError("Child accounts cannot select a plan")

        approval = None
        if approval_token:
            approval = await ParentApprovalService(self.session).require_live(approval_token)
            if approval.parent_email != user.email:
                raise AuthorizationError(
                    "This approval was sent to a different parent",
                    error_code="EMAIL_MISMATCH",
                )

        account.plan = definition.key
        account.billing_cycle = billing_cycle
        if approval is None and account.role == AccountRole.ADULT.value:
            account.setup_stage = SetupStage.COMPLETED.value
        else:
            account.setup_stage = SetupStage.PLAN_SELECTED.value
        await self.accounts.save(account)

        plan = await self._upsert_plan(user, definition, billing_cycle)
        joined = await self.auto_join_pending_invites(user)

        redirect_url = (
            approval_url(PARENTS_HQ_PATH, approval.approval_token) if approval else DASHBOARD_PATH
        )
        logger.info(
            "plan_selected",
            user_id=str(user.id),
            plan=definition.key,
            plan_id=str(plan.id),
            setup_stage=account.setup_stage,
            joined_cliqs=len(joined),
        )
        return {
            "plan": definition.key,
            "setup_stage": account.setup_stage,
            "joined_cliq_ids": joined,
            "redirect_url": redirect_url,
        }

    @staticmethod
    def _get_definition(plan_key: str) -> PlanDefinition:
        key = plan_key.strip().lower()
        for plan in enabled_plans():
            if plan.key == key:
                return plan
        raise ValidationError(
            f"The plan '{plan_key}' is not available",
            error_code="PLAN_NOT_AVAILABLE",
        )

    async def _upsert_plan(self, user: User, definition: PlanDefinition, billing_cycle: str) -> Plan:
        plan = await self.repo.get_by_owner(user.id)
        if plan is None:
            plan = await self.repo.create(
                plan_key=definition.key,
                owner_id=user.id,
                max_members=definition.max_members,
                current_members=1,
                billing_cycle=billing_cycle,
                is_group_plan=definition.is_group_plan,
            )
        else:
            plan.plan_key = definition.key
            plan.max_members = definition.max_members
            plan.billing_cycle = billing_cycle
            plan.is_group_plan = definition.is_group_plan
            plan.status = "active"

        await self._upsert_member(plan, user.id, PlanMemberRole.OWNER)
        return plan

    # ═══════════════════════════════════════════════════════════════════════════
    # MEMBERS
    # ═══════════════════════════════════════════════════════════════════════════

    async def _upsert_member(self, plan: Plan, user_id: UUID, role: PlanMemberRole) -> None:
        membership = await self.plan_members.get_membership(plan.id, user_id)
        if membership is None:
            await self.plan_members.create(
                plan_id=plan.id,
                user_id=user_id,
                role=role.value,
                status=PlanMemberStatus.ACTIVE.value,
            )
        elif membership.status != PlanMemberStatus.ACTIVE.value:
            membership.status = PlanMemberStatus.ACTIVE.value
            await self.plan_members.save(membership)

        plan.current_members = await self.plan_members.count_active(plan.id)
        await self.repo.save(plan)

    async def add_member(self, owner: User, user_id: UUID) -> Plan:
        """
        Attach a user (typically a new child) to the owner's plan.

        Raises:
            PlanRequiredError: Owner has no plan
            AuthorizationError: Plan has no free member slots
        """
        plan = await self.repo.get_by_owner(owner.id)
        if plan is None:
            raise PlanRequiredError()

        existing = await self.plan_members.get_membership(plan.id, user_id)
        already_active = existing is not None and existing.status == PlanMemberStatus.ACTIVE.value
        if not already_active and await self.plan_members.count_active(plan.id) >= plan.max_members:
            raise AuthorizationError(
                "Your plan has no free member slots",
                details={"max_members": plan.max_members},
                error_code="PLAN_FULL",
            )

        await self._upsert_member(plan, user_id, PlanMemberRole.MEMBER)
        return plan

    async def get_slots(self, user: User) -> Plan:
        """
        The caller's plan with its member counts.

        Raises:
            PlanRequiredError: No plan selected
        """
        plan = await self.repo.get_by_owner(user.id)
        if plan is None:
            raise PlanRequiredError()
        return plan

    # ═══════════════════════════════════════════════════════════════════════════
    # AUTO-JOIN
    # ═══════════════════════════════════════════════════════════════════════════

    async def auto_join_pending_invites(self, user: User) -> list[UUID]:
        """
        Join every cliq the user has a pending adult invite to.

        Each cliq is joined at most once however many invites point at it.
        Every matching invite is marked completed, including invites to
        cliqs the user already belongs to.

        Returns:
            Ids of cliqs newly joined, in invite order
        """
        now = utc_now()
        invites = await self.invites.list_pending_adult_for_email(user.email, now)
        if not invites:
            return []

        existing = await self.memberships.list_cliq_ids_for_user(user.id)
        joined: list[UUID] = []

        for invite in invites:
            cliq_id = invite.cliq_id
            if cliq_id not in existing and await self.cliqs.get_active(cliq_id) is not None:
                await self.memberships.get_or_create(user.id, cliq_id)
                existing.add(cliq_id)
                joined.append(cliq_id)

            invite.status = InviteStatus.COMPLETED.value
            invite.used = True
            invite.invited_user_id = user.id
            invite.accepted_at = invite.accepted_at or now
            invite.completed_at = now
            await self.invites.save(invite)

        logger.info(
            "invites_auto_joined",
            user_id=str(user.id),
            invites=len(invites),
            joined=len(joined),
        )
        return joined

    @staticmethod
    def has_plan(account: Optional[Account]) -> bool:
        return bool(account and account.plan)
