"""
Application Constants

Values that are part of the product rather than the deployment
(deployment values live in settings).
"""

from dataclasses import dataclass


# ═══════════════════════════════════════════════════════════════════════════════
# INVITES
# ═══════════════════════════════════════════════════════════════════════════════

JOIN_CODE_PREFIX = "cliq-"
JOIN_CODE_LENGTH = 6
# Excludes 0, o, 1, i and l
JOIN_CODE_ALPHABET = "abcdefghjklmnpqrstuvwxyz23456789"

# ═══════════════════════════════════════════════════════════════════════════════
# PAGINATION & LIMITS
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
NOTICE_MAX_LENGTH = 500

# ═══════════════════════════════════════════════════════════════════════════════
# PLANS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PlanDefinition:
    """Catalog entry for a selectable plan."""

    key: str
    label: str
    max_members: int
    is_group_plan: bool = False
    price_monthly_cents: int = 0


PLAN_CATALOG: dict[str, PlanDefinition] = {
    "test": PlanDefinition(key="test", label="Test Plan", max_members=5),
    "basic": PlanDefinition(key="basic", label="Basic", max_members=3, price_monthly_cents=499),
    "premium": PlanDefinition(key="premium", label="Premium", max_members=6, price_monthly_cents=999),
    "family": PlanDefinition(key="family", label="Family", max_members=8, price_monthly_cents=1499),
    "group": PlanDefinition(
        key="group",
        label="Group",
        max_members=25,
        is_group_plan=True,
        price_monthly_cents=2999,
    ),
}

# ═══════════════════════════════════════════════════════════════════════════════
# ONBOARDING ROUTES (web app paths used in redirects and email links)
# ═══════════════════════════════════════════════════════════════════════════════

PARENT_APPROVAL_PATH = "/parent-approval"
CHOOSE_PLAN_PATH = "/choose-plan"
PARENTS_HQ_PATH = "/parents/hq"
PARENTS_HQ_SUCCESS_PATH = "/parents/hq/success"
SIGN_IN_PATH = "/sign-in"
INVITE_ACCEPT_PATH = "/invite/accept"
APPROVAL_HELP_PATH = "/help/approval-link"
APPROVAL_DECLINED_PATH = "/parent-approval/declined"
FORGOT_PASSWORD_PATH = "/forgot-password"
RESET_PASSWORD_PATH = "/reset-password"
