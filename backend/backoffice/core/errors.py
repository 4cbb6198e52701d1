"""
Domain exceptions and their HTTP mapping.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


class BackofficeError(Exception):
    """Base class for errors raised by back-office services."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "internal_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(BackofficeError):
    """A requested record (trip, fee, activity) does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


class BadRequestError(BackofficeError):
    """Invalid input: negative amount, unsupported currency, bad split."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "bad_request"


class ConflictError(BackofficeError):
    """Operation not allowed in the record's current state."""

    status_code = status.HTTP_409_CONFLICT
    error = "conflict"


class ProviderUnavailableError(BackofficeError):
    """FX provider missing or failing. Caught inside the resolver."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "provider_unavailable"


def backoffice_error_handler(request: Request, exc: BackofficeError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.detail},
    )


def server_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "An unexpected error occurred."},
    )
