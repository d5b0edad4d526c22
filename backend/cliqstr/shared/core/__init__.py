"""
Core Module

Provides core functionality shared across the application:
- Structured logging
- Custom exceptions

Usage:
======
    from cliqstr.shared.core.logging import logger, get_logger
    from cliqstr.shared.core.exceptions import CliqstrException, NotFoundError

    logger.info("Starting operation", user_id=user_id)
"""

from cliqstr.shared.core.logging import (
    logger,
    get_logger,
    log_context,
    clear_log_context,
)
from cliqstr.shared.core.exceptions import (
    CliqstrException,
    AuthenticationError,
    AuthorizationError,
    PlanRequiredError,
    NotFoundError,
    CliqNotFoundError,
    InviteNotFoundError,
    ChildNotFoundError,
    PostNotFoundError,
    EventNotFoundError,
    RedAlertNotFoundError,
    ValidationError,
    InvalidTokenError,
    ParentEmailRequiredError,
    ConflictError,
    DuplicateResourceError,
    ServiceUnavailableError,
    ExternalServiceError,
    ChildAccountCreationError,
)

__all__ = [
    # Logging
    "logger",
    "get_logger",
    "log_context",
    "clear_log_context",
    # Exceptions
    "CliqstrException",
    "AuthenticationError",
    "AuthorizationError",
    "PlanRequiredError",
    "NotFoundError",
    "CliqNotFoundError",
    "InviteNotFoundError",
    "ChildNotFoundError",
    "PostNotFoundError",
    "EventNotFoundError",
    "RedAlertNotFoundError",
    "ValidationError",
    "InvalidTokenError",
    "ParentEmailRequiredError",
    "ConflictError",
    "DuplicateResourceError",
    "ServiceUnavailableError",
    "ExternalServiceError",
    "ChildAccountCreationError",
]
