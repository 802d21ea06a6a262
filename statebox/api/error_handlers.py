"""Error Handlers — global exception handlers for the statebox API.

Invariants:
    - StateBoxError → structured JSON with error code, message, severity
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (StateBoxError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep the app module import fan-out small
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from statebox.core.errors import ErrorSeverity, InvalidMutationError, StateBoxError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_statebox_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_statebox_error_handler(app: FastAPI) -> None:
    """Register statebox domain/infrastructure error handler."""

    @app.exception_handler(StateBoxError)
    async def statebox_error_handler(request: Request, exc: StateBoxError):
        """Handle all statebox domain/infrastructure errors."""
        logger.error(
            f"StateBoxError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        content = exc.to_response()
        if isinstance(exc, InvalidMutationError):
            content["error"]["details"] = _format_details(exc.errors)
        return JSONResponse(status_code=exc.http_status, content=content)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Invalid request data",
                    "category": "validation",
                    "severity": ErrorSeverity.ERROR.value,
                    "details": _format_details(exc.errors()),
                },
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _format_details(errors) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e.get("loc", ())),
            "message": e.get("msg", ""),
            "type": e.get("type", ""),
        }
        for e in errors
    ]
