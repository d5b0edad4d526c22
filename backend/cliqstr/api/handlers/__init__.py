"""
API Handlers

Route handlers for the Cliqstr API.

Handlers follow the pattern:
- Parse HTTP requests
- Call service methods
- Format HTTP responses

All business logic is delegated to the service layer; domain errors are
turned into JSON responses by the global exception handlers.
"""

from cliqstr.api.handlers import (
    auth_handler,
    cliq_handler,
    event_handler,
    health_handler,
    invite_handler,
    parent_approval_handler,
    parent_handler,
    plan_handler,
    red_alert_handler,
)

__all__ = [
    "auth_handler",
    "cliq_handler",
    "event_handler",
    "health_handler",
    "invite_handler",
    "parent_approval_handler",
    "parent_handler",
    "plan_handler",
    "red_alert_handler",
]
