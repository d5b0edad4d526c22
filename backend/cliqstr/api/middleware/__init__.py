"""
API Middleware

Custom middleware for the FastAPI application.

Components:
===========
- error_handler: Global exception handling
- request_context: Request id and path bound to every log line

Usage:
======
    from cliqstr.api.middleware import setup_exception_handlers, setup_request_context

    app = FastAPI()
    setup_request_context(app)
    setup_exception_handlers(app)
"""

from cliqstr.api.middleware.error_handler import setup_exception_handlers
from cliqstr.api.middleware.request_context import setup_request_context

__all__ = [
    "setup_exception_handlers",
    "setup_request_context",
]
