"""
Logging Configuration

Structured logging setup using structlog for consistent, parseable logs.

Log Output:
===========
Development:
    2025-03-02 10:30:00 [info     ] invite_created   [cliqstr.invites] invite_id=550e8400-... target_state=new

Production (JSON):
    {"timestamp": "2025-03-02T10:30:00Z", "level": "info", "event": "invite_created", "request_id": "..."}

Features:
=========
- Structured key-value logging
- Request-scoped context (request_id, user_id) bound by the API middleware
- Colored console output in development, JSON in production
- Email addresses are masked before they reach a log line

Usage:
======
    from cliqstr.shared.core.logging import logger, get_logger, log_context, mask_email

    # Basic logging
    logger.info("parent_approval_created", approval_id=str(approval.id))

    # Named logger per feature
    invite_logger = get_logger("cliqstr.invites")
    invite_logger.warning("invite_email_failed", recipient=mask_email(email))

    # Add context to all subsequent logs of this request
    log_context(request_id=request_id, user_id=user_id)
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import Processor

from cliqstr.config.settings import settings


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    Sets up structlog with:
    - Development: Colored console output for readability
    - Production: JSON output for log aggregation systems

    Called automatically when this module is imported.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors: list[Processor] = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, e.g. "cliqstr.red_alert"

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> None:
    """
    Add context variables to all subsequent log calls.

    Context is stored in context variables and automatically included
    in all log messages until cleared or the request ends.

    Example:
        log_context(request_id="abc-123", user_id="user-456")
        logger.info("child_account_created")  # Includes request_id, user_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_log_context() -> None:
    """
    Clear all context variables.

    Called by the request middleware once the response is produced so
    context never leaks into another request.
    """
    structlog.contextvars.clear_contextvars()


def mask_email(email: str | None) -> str:
    """
    Mask an email address for logging.

    Example:
        mask_email("parent@example.com")  # "pa***@example.com"
    """
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


# Initialize logging on module import
setup_logging()

# Default logger instance for convenient import
logger = get_logger("cliqstr")
