"""
Adapters Package

External service integrations.

Contents:
=========
- email_adapter: Transactional email HTTP API client (log-only without an API key)

Note: Database access is handled by shared/db/session.py using async SQLAlchemy.

Usage:
======
    from cliqstr.shared.adapters.email_adapter import EmailMessage, get_email_adapter

    await get_email_adapter().send(EmailMessage(to=..., subject=..., text=...))
"""

from cliqstr.shared.adapters.email_adapter import (
    EmailAdapter,
    EmailMessage,
    EmailResult,
    get_email_adapter,
)

__all__ = [
    "EmailAdapter",
    "EmailMessage",
    "EmailResult",
    "get_email_adapter",
]
