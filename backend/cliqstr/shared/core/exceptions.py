"""
Custom Exceptions

Application-specific exceptions with HTTP status codes and error codes.

Exception Hierarchy:
====================
    CliqstrException (base)
       │
       ├── AuthenticationError (401)      ← Missing session, bad credentials
       ├── AuthorizationError (403)       ← Wrong role, not linked, not a member
       │      └── PlanRequiredError       ← Plan must be chosen first
       ├── NotFoundError (404)            ← Resource not found
       │      ├── CliqNotFoundError
       │      ├── InviteNotFoundError
       │      ├── ChildNotFoundError
       │      ├── PostNotFoundError
       │      ├── EventNotFoundError
       │      └── RedAlertNotFoundError
       ├── ValidationError (400)          ← Invalid input data
       │      ├── InvalidTokenError       ← Unknown/expired/used approval or invite token
       │      └── ParentEmailRequiredError ← Target address belongs to a child
       ├── ConflictError (409)            ← Resource already exists / already processed
       ├── ServiceUnavailableError (503)  ← External service down
       └── ChildAccountCreationError (500) ← Child bundle rolled back

Usage:
======
    from cliqstr.shared.core.exceptions import NotFoundError, ValidationError

    # Raise with automatic status code
    raise NotFoundError("Cliq", cliq_id)
    # Results in: {"error": {"code": "NOT_FOUND", "message": "Cliq with id 'abc' not found"}}

    # Raise with additional details
    raise ValidationError("Invalid email format", details={"field": "email"})

Exception Handling:
===================
    Exceptions are caught by the error handler middleware and converted to JSON:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Cliq with id 'abc-123' not found",
            "details": {}
        }
    }
"""

from typing import Any, Optional


class CliqstrException(Exception):
    """
    Base exception for all Cliqstr application errors.

    All custom exceptions inherit from this class, providing:
    - HTTP status code mapping
    - Error code for programmatic handling
    - Optional details dictionary
    - Consistent JSON serialization

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (default 500)
        error_code: Machine-readable error code
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dictionary with error details for JSON response
        """
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# ═══════════════════════════════════════════════════════════════════════════════
# AUTHENTICATION & AUTHORIZATION ERRORS (401, 403)
# ═══════════════════════════════════════════════════════════════════════════════


class AuthenticationError(CliqstrException):
    """
    Authentication failed error (401 Unauthorized).

    Raised when:
    - Missing or invalid session
    - Token expired or malformed
    - Wrong email/password pair
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_ERROR",
            details=details,
        )


class AuthorizationError(CliqstrException):
    """
    Authorization failed error (403 Forbidden).

    Raised when user is authenticated but lacks permission.
    """

    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[dict[str, Any]] = None,
        error_code: str = "AUTHORIZATION_ERROR",
    ) -> None:
        super().__init__(
            message=message,
            status_code=403,
            error_code=error_code,
            details=details,
        )


class PlanRequiredError(AuthorizationError):
    """Raised when an action needs a selected plan and the account has none."""

    def __init__(self, message: str = "A plan must be selected first") -> None:
        super().__init__(
            message=message,
            details={"redirect_url": "/choose-plan"},
            error_code="PLAN_REQUIRED",
        )


# ═══════════════════════════════════════════════════════════════════════════════
# NOT FOUND ERRORS (404)
# ═══════════════════════════════════════════════════════════════════════════════


class NotFoundError(CliqstrException):
    """
    Resource not found error (404 Not Found).

    Base class for all "not found" errors with automatic message formatting.

    Example:
        raise NotFoundError("Cliq", cliq_id)
        # Message: "Cliq with id 'abc-123' not found"
    """

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class CliqNotFoundError(NotFoundError):
    """Cliq not found error."""

    def __init__(self, cliq_id: str) -> None:
        super().__init__(resource="Cliq", resource_id=cliq_id)


class InviteNotFoundError(NotFoundError):
    """Invite not found error."""

    def __init__(self, code: Optional[str] = None) -> None:
        super().__init__(resource="Invite", details={"reason": "not_found", "code": code})


class ChildNotFoundError(NotFoundError):
    """Child account not found error."""

    def __init__(self, child_id: str) -> None:
        super().__init__(resource="Child", resource_id=child_id)


class PostNotFoundError(NotFoundError):
    """Post not found error."""

    def __init__(self, post_id: str) -> None:
        super().__init__(resource="Post", resource_id=post_id)


class EventNotFoundError(NotFoundError):
    """Event not found error."""

    def __init__(self, event_id: str) -> None:
        super().__init__(resource="Event", resource_id=event_id)


class RedAlertNotFoundError(NotFoundError):
    """Red Alert not found error."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(resource="Red Alert", resource_id=alert_id)


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION & CONFLICT ERRORS (400, 409)
# ═══════════════════════════════════════════════════════════════════════════════


class ValidationError(CliqstrException):
    """
    Validation error (400 Bad Request).

    Raised when input data fails validation.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[dict[str, Any]] = None,
        error_code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details,
        )


class InvalidTokenError(ValidationError):
    """
    Approval, invite or password reset token cannot be used.

    Covers unknown, expired, declined and already-completed tokens.
    The `reason` detail tells the client which one.
    """

    def __init__(
        self,
        message: str = "Invalid or expired link",
        reason: str = "invalid",
        help_url: str = "/help/approval-link",
    ) -> None:
        super().__init__(
            message=message,
            details={"reason": reason, "help_url": help_url},
            error_code="INVALID_TOKEN",
        )


class ParentEmailRequiredError(ValidationError):
    """Target email belongs to a child account; the parent's address is needed instead."""

    def __init__(
        self,
        message: str = (
            "A parent email is required. This address belongs to a child account, "
            "so the invite must go to the child's parent."
        ),
    ) -> None:
        super().__init__(message=message, error_code="PARENT_EMAIL_REQUIRED")


class ConflictError(CliqstrException):
    """
    Resource conflict error (409 Conflict).

    Raised when operation conflicts with existing resource.

    Example:
        raise ConflictError("Email already registered")
    """

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details,
        )


class DuplicateResourceError(ConflictError):
    """
    Duplicate resource error.

    Specific case of conflict when trying to create duplicate resource.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, details=details)


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICE ERRORS (500, 503)
# ═══════════════════════════════════════════════════════════════════════════════


class ServiceUnavailableError(CliqstrException):
    """
    Service temporarily unavailable error (503).

    Raised when external services (email provider) are down.
    """

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=503,
            error_code="SERVICE_UNAVAILABLE",
            details=details,
        )


class ExternalServiceError(ServiceUnavailableError):
    """
    External service error.

    More specific error for external API failures.
    """

    def __init__(
        self,
        service_name: str,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        msg = message or f"{service_name} service error"
        extra_details = details or {}
        extra_details["service"] = service_name
        super().__init__(message=msg, details=extra_details)


class ChildAccountCreationError(CliqstrException):
    """
    Child account bundle could not be written (500).

    Every write of the bundle has been rolled back; the client shows the
    help page and the parent retries with the same token.
    """

    def __init__(self) -> None:
        super().__init__(
            message="Approval could not be completed. Please try again.",
            status_code=500,
            error_code="CHILD_ACCOUNT_CREATION_FAILED",
            details={"help_url": "/parents/hq/help"},
        )
