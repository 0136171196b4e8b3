"""Service-level exceptions and their HTTP translation.

Services raise these instead of `HTTPException` so they stay usable from
scripts; `setup_exception_handlers` maps them onto JSON responses.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("project_matcher.errors")


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ServiceError):
    status_code = 400


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class InternalServiceError(ServiceError):
    """A failure the client cannot fix (transaction rollback, upstream outage)."""
    status_code = 500


class RecommendationError(InternalServiceError):
    pass


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("service_error %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unhandled exception and return a generic 500 body with a trace id."""
    error_id = getattr(request.state, "request_id", None) or uuid.uuid4().hex
    logger.error(
        "unhandled_error error_id=%s %s %s: %s",
        error_id,
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_id": error_id},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
