"""
Utilities Package

Common utility functions and helpers.

Contents:
=========
- security: Password hashing, session tokens, link secrets
- constants: Product constants (plan catalog, join code alphabet, paths)

Usage:
======
    from cliqstr.shared.utils.security import SecurityUtils, normalize_email
    from cliqstr.shared.utils.constants import PLAN_CATALOG
"""

from cliqstr.shared.utils.security import SecurityUtils, calculate_age, normalize_email
from cliqstr.shared.utils.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PLAN_CATALOG,
    PlanDefinition,
)

__all__ = [
    "SecurityUtils",
    "calculate_age",
    "normalize_email",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "PLAN_CATALOG",
    "PlanDefinition",
]
