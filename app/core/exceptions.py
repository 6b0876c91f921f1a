"""
Domain error types and global exception handlers.

Every domain error carries the HTTP status it maps to, so endpoints simply
let them propagate. Handlers keep stack traces out of client responses.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class InspectionLogError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(InspectionLogError):
    status_code = 404


class ValidationError(InspectionLogError):
    """Unrecognised enumeration value or missing mandatory argument."""

    status_code = 400


class ConflictError(InspectionLogError):
    """Uniqueness violation or stale version."""

    status_code = 409


class InvalidTransitionError(ConflictError):
    """Workflow transition not allowed from the form's current status."""


class AuthError(InspectionLogError):
    """Bad credentials or inactive account. Deliberately undifferentiated."""

    status_code = 401

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class RenderError(InspectionLogError):
    status_code = 500


# ── Handlers ────────────────────────────────────────────────────────
async def _domain_error_handler(_request: Request, exc: InspectionLogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message, exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "success": False},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _stale_data_handler(_request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("Concurrent modification detected: %s", exc)
    return JSONResponse(
        status_code=409,
        content={"detail": "Record was modified concurrently", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(InspectionLogError, _domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StaleDataError, _stale_data_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
