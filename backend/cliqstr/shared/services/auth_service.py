"""
Authentication Service

Business logic for sign-up, sign-in, session issuing and passwords.

Service Pattern:
================
Services encapsulate business logic and coordinate between:
- Repositories (data access)
- Security utilities (bcrypt hashes, JWT sessions)
- Domain logic (age gate, role upgrades)

Who Signs Up Where:
===================
    Adult (18+)  → POST /auth/sign-up         → Account(role=Adult)
    Child        → POST /auth/child-signup    → ParentApproval only; the
                                                account is created later by
                                                the parent in Parents HQ
    Parent       → /parent-approval/signup    → see ParentApprovalService

Usage:
======
    from cliqstr.shared.services.auth_service import AuthService

    service = AuthService(db)
    user, account, token, expires = await service.sign_in(email, password)

Password Reset:
===============
    forgot-password  → random token emailed, only its SHA-256 is stored,
                       expires after PASSWORD_RESET_EXPIRE_MINUTES
    reset-password   → token hash matched, password replaced, token cleared

forgot-password answers the same way whether or not the email exists.
"""

from datetime import date, timedelta
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateResourceError,
    InvalidTokenError,
    ValidationError,
)
from cliqstr.shared.core.logging import get_logger, mask_email
from cliqstr.shared.models.base import utc_now
from cliqstr.shared.models.enums import AccountRole, SetupStage
from cliqstr.shared.models.profile import Profile
from cliqstr.shared.models.user import Account, User
from cliqstr.shared.repositories import (
    AccountRepository,
    ActivityLogRepository,
    ProfileRepository,
    UserRepository,
)
from cliqstr.shared.services.notification_service import NotificationService
from cliqstr.shared.utils.constants import FORGOT_PASSWORD_PATH
from cliqstr.shared.utils.security import (
    SecurityUtils,
    calculate_age,
    normalize_email,
    password_weakness,
)

logger = get_logger("cliqstr.auth")


def issue_session(user: User) -> Tuple[str, int]:
    """
    Create a signed session token for a user.

    Returns:
        Tuple of (access_token, expires_in_seconds)
    """
    access_token = SecurityUtils.create_access_token(
        data={"user_id": str(user.id), "email": user.email},
        secret_key=settings.SECRET_KEY,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        algorithm=settings.JWT_ALGORITHM,
    )
    expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60  # Convert to seconds
    return access_token, expires_in


class AuthService:
    """
    Service for authentication-related business logic.

    Handles:
    - Adult registration with the age gate
    - Sign-in by email or child username
    - Adult → Parent upgrade
    - Password reset and change

    Attributes:
        session: Database session
        repo: UserRepository instance
    """

    def __init__(
        self,
        session: AsyncSession,
        notifications: Optional[NotificationService] = None,
    ) -> None:
        self.session = session
        self.notifications = notifications or NotificationService()
        self.repo = UserRepository(session)
        self.accounts = AccountRepository(session)
        self.profiles = ProfileRepository(session)
        self.activity = ActivityLogRepository(session)

    async def create_user(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        birthdate: date,
        role: AccountRole,
        is_approved: bool = False,
    ) -> Tuple[User, Account]:
        """
        Create a User and its Account.

        Raises:
            DuplicateResourceError: If email already registered
        """
        email = normalize_email(email)
        if await self.repo.email_exists(email):
            raise DuplicateResourceError("Email already registered")

        user = await self.repo.create(
            email=email,
            password_hash=SecurityUtils.hash_password(password),
            is_parent=role == AccountRole.PARENT,
            is_verified=is_approved,
        )
        account = await self.accounts.create(
            user_id=user.id,
            role=role.value,
            is_approved=is_approved,
            first_name=first_name,
            last_name=last_name,
            birthdate=birthdate,
            setup_stage=SetupStage.STARTED.value,
        )
        return user, account

    async def sign_up(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        birthdate: date,
    ) -> Tuple[User, Account, str, int]:
        """
        Register an adult.

        Returns:
            Tuple of (user, account, access_token, expires_in_seconds)

        Raises:
            ValidationError: Under ADULT_MIN_AGE
            DuplicateResourceError: If email already registered
        """
        if calculate_age(birthdate) < settings.ADULT_MIN_AGE:
            raise ValidationError(
                f"You must be {settings.ADULT_MIN_AGE} or older to sign up. "
                "Ask a parent to approve a child account instead.",
                details={"redirect_url": "/child-signup"},
                error_code="UNDERAGE",
            )

        user, account = await self.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            birthdate=birthdate,
            role=AccountRole.ADULT,
            is_approved=True,
        )
        access_token, expires_in = issue_session(user)

        logger.info("user_signed_up", user_id=str(user.id), role=account.role)
        return user, account, access_token, expires_in

    async def sign_in(
        self,
        identifier: str,
        password: str,
    ) -> Tuple[User, Account, str, int]:
        """
        Authenticate by email, or by username for child accounts.

        Returns:
            Tuple of (user, account, access_token, expires_in_seconds)

        Raises:
            AuthenticationError: If credentials are invalid
            AuthorizationError: If the account is suspended
        """
        user = await self._find_user(identifier)
        if not user:
            raise AuthenticationError("Invalid email or password")

        if not SecurityUtils.verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        account = await self.accounts.get_by_user_id(user.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")
        if account.suspended:
            raise AuthorizationError("This account is suspended", error_code="ACCOUNT_SUSPENDED")

        await self.activity.record(user.id, "sign_in", {"role": account.role})
        access_token, expires_in = issue_session(user)

        logger.info("user_signed_in", user_id=str(user.id), role=account.role)
        return user, account, access_token, expires_in

    async def _find_user(self, identifier: str) -> Optional[User]:
        identifier = identifier.strip()
        if "@" in identifier:
            return await self.repo.get_by_email(normalize_email(identifier))

        profile = await self.profiles.get_one_by(username=identifier.lower())
        if profile is None:
            return None
        user = await self.repo.get(profile.user_id)
        if user is None or user.is_deleted:
            return None
        return user

    async def get_status(self, user: User) -> Tuple[Account, Optional[Profile]]:
        account = await self.accounts.get_by_user_id(user.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")
        profile = await self.profiles.get_by_user_id(user.id)
        return account, profile

    async def upgrade_to_parent(self, user: User) -> Tuple[Account, bool]:
        """
        Turn an Adult into a Parent.

        Returns:
            Tuple of (account, upgraded). upgraded is False when the
            account already was a Parent.

        Raises:
            AuthorizationError: Child and Admin accounts cannot be upgraded
        """
        account = await self.accounts.get_by_user_id(user.id)
        if account is None:
            raise AuthenticationError("Account setup is incomplete")

        if account.role == AccountRole.PARENT.value:
            return account, False
        if account.role != AccountRole.ADULT.value:
            raise AuthorizationError(
                "Only adult accounts can become parent accounts",
                error_code="UPGRADE_NOT_ALLOWED",
            )

        account.role = AccountRole.PARENT.value
        account.is_approved = True
        user.is_parent = True
        await self.accounts.save(account)
        await self.repo.save(user)

        logger.info("account_upgraded_to_parent", user_id=str(user.id), email=mask_email(user.email))
        return account, True

    # ═══════════════════════════════════════════════════════════════════════════
    # PASSWORDS
    # ═══════════════════════════════════════════════════════════════════════════

    async def request_password_reset(self, email: str) -> None:
        """
        Email a reset link if the address belongs to an adult user.

        Unknown addresses and child accounts get no email. The caller's
        reply is the same either way.
        """
        user, account = await self.repo.get_with_account(normalize_email(email))
        if user is None or account is None or account.role == AccountRole.CHILD.value:
            logger.info("password_reset_skipped", email=mask_email(email))
            return

        reset_token = SecurityUtils.generate_token()
        user.reset_token = SecurityUtils.hash_token(reset_token)
        user.reset_token_expires_at = utc_now() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        await self.repo.save(user)

        await self.notifications.send_password_reset(user.email, reset_token)
        logger.info("password_reset_requested", user_id=str(user.id))

    async def validate_reset_token(self, code: str) -> User:
        """
        The user a reset code belongs to.

        Raises:
            InvalidTokenError: Unknown, used or expired code
        """
        user = await self.repo.get_by_reset_token(SecurityUtils.hash_token(code))
        if user is None:
            raise InvalidTokenError("Invalid or expired reset link", help_url=FORGOT_PASSWORD_PATH)
        if user.reset_token_expires_at is None or user.reset_token_expires_at <= utc_now():
            raise InvalidTokenError(
                "This reset link has expired",
                reason="expired",
                help_url=FORGOT_PASSWORD_PATH,
            )
        return user

    async def reset_password(self, code: str, new_password: str) -> User:
        """
        Replace the password of the code's owner. The code works once.

        Raises:
            InvalidTokenError: Unknown, used or expired code
        """
        user = await self.validate_reset_token(code)
        user.password_hash = SecurityUtils.hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires_at = None
        await self.repo.save(user)

        await self.activity.record(user.id, "password_reset")
        logger.info("password_reset_completed", user_id=str(user.id))
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """
        Change the signed-in user's password.

        Raises:
            ValidationError: Wrong current password, weak or unchanged new password
        """
        if not SecurityUtils.verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", error_code="WRONG_PASSWORD")

        weakness = password_weakness(new_password)
        if weakness:
            raise ValidationError(weakness, error_code="WEAK_PASSWORD")
        if SecurityUtils.verify_password(new_password, user.password_hash):
            raise ValidationError(
                "New password must be different from current password",
                error_code="PASSWORD_UNCHANGED",
            )

        user.password_hash = SecurityUtils.hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires_at = None
        await self.repo.save(user)

        await self.activity.record(user.id, "password_changed")
        logger.info("password_changed", user_id=str(user.id))
