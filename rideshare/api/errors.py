"""
Error -> HTTP mapping.

Domain errors map to a status code through their category; anything else
is an infrastructure failure and becomes an opaque 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rideshare.api.schemas import ErrorResponse
from rideshare.domain.errors import DomainError, ErrorCategory

logger = logging.getLogger(__name__)

STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.INVALID_INPUT: 400,
    ErrorCategory.FORBIDDEN: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
}

# OpenAPI metadata for routers whose handlers can raise DomainError
ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in sorted(STATUS_BY_CATEGORY.values())
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CATEGORY[exc.category],
        content={"error": exc.message, "code": exc.kind.code},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "code": "internal_error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
