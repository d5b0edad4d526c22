"""
Request Context Middleware

Binds a request id and path to the structlog context for every request,
so every log line written while handling it carries them. The id is taken
from an incoming X-Request-ID header when present and echoed back.
"""

import uuid

from fastapi import FastAPI, Request

from cliqstr.shared.core.logging import clear_log_context, log_context


REQUEST_ID_HEADER = "X-Request-ID"


def setup_request_context(app: FastAPI) -> None:
    """Register the request-context middleware on the application."""

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        clear_log_context()
        log_context(request_id=request_id, path=request.url.path, method=request.method)
        try:
            response = await call_next(request)
        finally:
            clear_log_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
