"""Exception handlers producing a consistent ``{error, message, details}`` body."""

import logging
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..core.config import settings
from ..errors import BuilderError


logger = logging.getLogger(__name__)


async def builder_exception_handler(request: Request, exc: BuilderError) -> JSONResponse:
    """Map a domain error onto its HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.title} on {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{exc.title} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.title,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError]
) -> JSONResponse:
    errors = []

    for error in exc.errors():
        field_path = ".".join(str(x) for x in error["loc"] if x != "body")
        errors.append({
            "field": field_path,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(f"Validation error on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "The request data failed validation",
            "details": errors,
        },
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the document store",
            "details": str(exc) if settings.DEBUG else None,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        content = {
            "error": detail.get("error", "Error"),
            "message": detail.get("message", ""),
            "details": detail,
        }
    elif isinstance(detail, str):
        content = {"error": detail, "message": detail, "details": None}
    else:
        content = {"error": "Error", "message": "", "details": detail}

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.DEBUG else None,
        },
    )
