"""
Error Handler Middleware

Global exception handling for the API.

Provides consistent error responses across all endpoints by catching
exceptions and converting them to standardized JSON responses.

Error Response Format:
======================
    {
        "error": {
            "code": "PARENT_EMAIL_REQUIRED",
            "message": "Please use a parent's email address",
            "details": {}
        }
    }

Exception Handling:
===================
1. CliqstrException subclasses → Use their status_code and to_dict()
2. Request / Pydantic validation errors → 400 VALIDATION_ERROR
3. Other exceptions → 500 with generic message (details only in debug)

Usage:
======
    from cliqstr.api.middleware.error_handler import setup_exception_handlers

    app = FastAPI()
    setup_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import CliqstrException
from cliqstr.shared.core.logging import logger


def _validation_response(errors: list[dict[str, Any]]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": jsonable_encoder(errors, exclude={"ctx", "url"})},
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Set up global exception handlers.

    Should be called during application initialization to register
    exception handlers for all routes.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CliqstrException)
    async def cliqstr_exception_handler(
        request: Request,
        exc: CliqstrException,
    ) -> JSONResponse:
        """
        Handle Cliqstr-specific exceptions.

        All custom exceptions inherit from CliqstrException and include:
        - status_code: HTTP status code
        - error_code: Machine-readable error code
        - message: Human-readable message
        - details: Additional context
        """
        logger.warning(
            "Application error",
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_dict()),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """
        Handle request validation errors.

        These occur when the body, query or path doesn't match the expected schema.
        """
        logger.warning(
            "Validation error",
            errors=len(exc.errors()),
            path=request.url.path,
        )
        return _validation_response(list(exc.errors()))

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: ValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors raised while building responses or models."""
        logger.warning(
            "Validation error",
            errors=exc.error_count(),
            path=request.url.path,
        )
        return _validation_response(exc.errors())

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Handle unexpected exceptions.

        Catches any unhandled exception and returns a generic error.
        Full error details are logged but only exposed in debug mode.
        """
        logger.error(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        error: dict[str, Any] = {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        }
        if settings.DEBUG:
            error["details"] = {"error": str(exc), "type": type(exc).__name__}
        return JSONResponse(status_code=500, content={"error": error})
