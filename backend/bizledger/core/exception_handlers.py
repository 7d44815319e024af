"""
FastAPI exception handlers for custom exceptions.

WHY: Services raise typed AppException subclasses carrying an ErrorKind.
This is the single place where those are turned into HTTP responses, so
every endpoint reports failures with the same JSON shape:

    {"error": ..., "kind": ..., "message": ..., "status_code": ..., "details": ...}
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bizledger.core.exceptions import AppException, ErrorKind, PersistenceError

logger = logging.getLogger(__name__)


_STATUS_KINDS = {
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.VALIDATION_FAILURE,
}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom AppException and its subclasses.

    Args:
        request: The FastAPI request object
        exc: The custom exception instance

    Returns:
        JSONResponse with error details
    """
    if exc.status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}"
        )
    else:
        logger.info(
            f"{exc.__class__.__name__} ({exc.kind.value}) on "
            f"{request.method} {request.url.path}: {exc.message}"
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    WHY: Body validation runs before any handler code, so a rejected request
    never reaches the database. The response carries field-level messages
    with kind ``validation_failure``.

    Args:
        request: The FastAPI request object
        exc: The Pydantic validation error

    Returns:
        JSONResponse with validation error details
    """
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=400,
        content={
            "error": "ValidationError",
            "kind": ErrorKind.VALIDATION_FAILURE.value,
            "message": "Request validation failed",
            "status_code": 400,
            "details": {"errors": errors},
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle Starlette HTTP exceptions (unknown routes, wrong methods).

    Args:
        request: The FastAPI request object
        exc: The HTTP exception

    Returns:
        JSONResponse with error details
    """
    kind = _STATUS_KINDS.get(exc.status_code, ErrorKind.INTERNAL)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "kind": kind.value,
            "message": exc.detail,
            "status_code": exc.status_code,
            "details": None,
        },
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Map data store failures to ``remote_failure``.

    The session dependency has already rolled back by the time this runs,
    so no partial write survives.
    """
    logger.exception(f"Database error on {request.method} {request.url.path}")
    error = PersistenceError(operation=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all handler for unexpected exceptions.

    WHY: Log the full traceback but return a generic error so implementation
    details never leak to clients.

    Args:
        request: The FastAPI request object
        exc: The unexpected exception

    Returns:
        JSONResponse with generic error message
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "kind": ErrorKind.INTERNAL.value,
            "message": "An unexpected error occurred",
            "status_code": 500,
            "details": None,
        },
    )
