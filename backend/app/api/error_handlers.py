"""Error Handlers — global exception handlers for the Starter API.

Invariants:
    - StarterError → ApiResponse envelope with code, category, severity
    - RequestValidationError → 400 envelope with field-level details
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Three-layer handler: domain (StarterError), validation (Pydantic), catch-all (Exception)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.errors import StarterError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_starter_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def validation_details(errors: list[dict]) -> list[dict]:
    """Flatten pydantic error dicts into {field, message, type} entries."""
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in errors
    ]


def _register_starter_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarterError)
    async def starter_error_handler(request: Request, exc: StarterError):
        """Handle all Starter API domain/infrastructure errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"StarterError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        headers = None
        if exc.http_status == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers,
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

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
                "success": False,
                "error": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "success": False,
        "error": "Invalid request data",
        "code": "VALIDATION_ERROR",
        "category": "validation",
        "severity": ErrorSeverity.ERROR.value,
        "details": validation_details(exc.errors()),
    }
