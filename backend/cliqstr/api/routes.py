"""
Route Registration

Centralizes all route registration for the FastAPI application.

Route Hierarchy:
================
    /api/health, /api/ready   → Health checks
    /api/auth                 → Sign-up, child sign-up, sign-in, session, passwords
    /api/invites              → Cliq invites
    /api/parent-approval      → Approval link flow and onboarding state
    /api/help                 → Resend approval link
    /api/plans                → Plan catalog and selection
    /api/parent               → Parents HQ
    /api/red-alert            → Red Alerts
    /api/cliqs                → Cliqs, members, posts, notices, events
    /api/events               → RSVPs, delete

Usage:
======
    from cliqstr.api.routes import register_routes

    app = FastAPI()
    register_routes(app)
"""

from fastapi import FastAPI

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
from cliqstr.shared.schemas.common import ErrorResponse


API_PREFIX = "/api"

# Documented error envelope for every feature router
ERROR_RESPONSES = {
    status_code: {"model": ErrorResponse}
    for status_code in (400, 401, 403, 404, 409)
}


def register_routes(app: FastAPI) -> None:
    """
    Register all API routes.

    Args:
        app: FastAPI application instance
    """
    # Health check endpoints
    app.include_router(
        health_handler.router,
        prefix=API_PREFIX,
        tags=["Health"],
    )

    # Authentication endpoints
    app.include_router(
        auth_handler.router,
        prefix=f"{API_PREFIX}/auth",
        tags=["Authentication"],
        responses=ERROR_RESPONSES,
    )

    # Invites
    app.include_router(
        invite_handler.router,
        prefix=f"{API_PREFIX}/invites",
        tags=["Invites"],
        responses=ERROR_RESPONSES,
    )

    # Parent approval flow
    app.include_router(
        parent_approval_handler.router,
        prefix=f"{API_PREFIX}/parent-approval",
        tags=["Parent Approval"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        parent_approval_handler.help_router,
        prefix=f"{API_PREFIX}/help",
        tags=["Parent Approval"],
        responses=ERROR_RESPONSES,
    )

    # Plans
    app.include_router(
        plan_handler.router,
        prefix=f"{API_PREFIX}/plans",
        tags=["Plans"],
        responses=ERROR_RESPONSES,
    )

    # Parents HQ
    app.include_router(
        parent_handler.router,
        prefix=f"{API_PREFIX}/parent",
        tags=["Parents HQ"],
        responses=ERROR_RESPONSES,
    )

    # Red Alerts
    app.include_router(
        red_alert_handler.router,
        prefix=f"{API_PREFIX}/red-alert",
        tags=["Red Alert"],
        responses=ERROR_RESPONSES,
    )

    # Cliqs and events
    app.include_router(
        cliq_handler.router,
        prefix=f"{API_PREFIX}/cliqs",
        tags=["Cliqs"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        event_handler.router,
        prefix=f"{API_PREFIX}/events",
        tags=["Events"],
        responses=ERROR_RESPONSES,
    )
