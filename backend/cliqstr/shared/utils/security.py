"""
Security Utilities

Password hashing, session tokens and the random secrets used in links.

Password Hashing:
=================
bcrypt through passlib, work factor from settings.BCRYPT_ROUNDS.

Session Tokens:
===============
PyJWT-signed tokens carrying user_id and email. The same token is set as
the session cookie and returned to API clients.

Link Secrets:
=============
    approval token  → secrets.token_urlsafe(32), emailed to parents
    invite token    → secrets.token_urlsafe(32), never shown to users
    reset token     → secrets.token_urlsafe(32), emailed; only its sha256 is stored
    join code       → "cliq-" + 6 chars from an unambiguous alphabet

Usage:
======
    from cliqstr.shared.utils.security import SecurityUtils

    hashed = SecurityUtils.hash_password("password123")
    SecurityUtils.verify_password("password123", hashed)

    token = SecurityUtils.create_access_token(
        data={"user_id": "123", "email": "parent@example.com"},
        secret_key=settings.SECRET_KEY,
        expires_delta=timedelta(hours=1),
    )
    payload = SecurityUtils.decode_access_token(token, settings.SECRET_KEY)
"""

from datetime import date, datetime, timedelta, timezone
import hashlib
import re
import secrets
from typing import Optional

import jwt
from passlib.context import CryptContext

from cliqstr.config.settings import settings
from cliqstr.shared.utils.constants import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH, JOIN_CODE_PREFIX


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


class SecurityUtils:
    """
    Security utilities for authentication.

    Provides:
    - Password hashing with bcrypt
    - JWT session token creation and validation
    - Random secrets for approval and invite links
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # PASSWORD HASHING
    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt (salt included in the hash)."""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify password against bcrypt hash."""
        return pwd_context.verify(plain_password, hashed_password)

    # ═══════════════════════════════════════════════════════════════════════════
    # JWT TOKENS
    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    def create_access_token(
        data: dict,
        secret_key: str,
        expires_delta: Optional[timedelta] = None,
        algorithm: str = "HS256",
    ) -> str:
        """
        Create a signed session token.

        Args:
            data: Payload data to encode (user_id, email)
            secret_key: Secret key for signing
            expires_delta: Token lifetime (default: 7 days)
            algorithm: JWT algorithm (default: HS256)

        Returns:
            Encoded JWT string
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        to_encode.update({
            "exp": now + (expires_delta or timedelta(days=7)),
            "iat": now,
        })
        return jwt.encode(to_encode, secret_key, algorithm=algorithm)

    @staticmethod
    def decode_access_token(
        token: str,
        secret_key: str,
        algorithm: str = "HS256",
    ) -> dict:
        """
        Decode and verify a session token.

        Raises:
            ValueError: If token is expired or invalid
        """
        try:
            return jwt.decode(token, secret_key, algorithms=[algorithm])
        except jwt.ExpiredSignatureError:
            raise ValueError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid token: {str(e)}")

    # ═══════════════════════════════════════════════════════════════════════════
    # LINK SECRETS
    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    def generate_token(nbytes: int = 32) -> str:
        """URL-safe random token for approval and invite links."""
        return secrets.token_urlsafe(nbytes)

    @staticmethod
    def generate_join_code() -> str:
        """
        Short invite code.

        Example:
            SecurityUtils.generate_join_code()  # "cliq-k7m2px"
        """
        suffix = "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))
        return f"{JOIN_CODE_PREFIX}{suffix}"

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 hex digest stored in place of an emailed reset token."""
        return hashlib.sha256(token.encode()).hexdigest()


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address before storing or comparing it."""
    return email.strip().lower()


def calculate_age(birthdate: date, today: Optional[date] = None) -> int:
    """Age in whole years on `today`."""
    today = today or date.today()
    before_birthday = (today.month, today.day) < (birthdate.month, birthdate.day)
    return today.year - birthdate.year - int(before_birthday)


# (pattern, message) pairs a new password must satisfy
PASSWORD_RULES = [
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"\d"), "Password must contain at least one number"),
]


def password_weakness(password: str) -> Optional[str]:
    """First rule the password breaks, or None when it is strong enough."""
    if len(password) < 8:
        return "Password must be at least 8 characters long"
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(password):
            return message
    return None
