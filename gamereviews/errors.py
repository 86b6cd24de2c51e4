"""Error taxonomy and HTTP exception handlers.

Repository functions raise the exceptions defined here; the handlers
registered by :func:`register_exception_handlers` turn them into JSON
responses of the form ``{"message": ...}`` at the request boundary.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .logging_config import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base exception for all application errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed required input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(AppError):
    """Requester is not the owner of the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    """Identifier or email has no matching record."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Duplicate unique key, e.g. a watchlist pair that already exists."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnexpectedError(AppError):
    """Store or runtime failure."""


def unexpected_error_response(exc: Exception) -> JSONResponse:
    """Wrap an unhandled exception in a 500 ``{"message": ...}`` response."""
    error = UnexpectedError(str(exc) or "Internal server error")
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Build a one-line message naming the first offending field."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(location)
    if first.get("type") == "missing" and field:
        return f"{field} is required"
    if field:
        return f"{field}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Convert an :class:`AppError` into its status code and message."""
    if exc.status_code >= 500:
        logger.error(
            "request_error", path=request.url.path, message=exc.message, exc_info=exc
        )
    else:
        logger.info(
            "request_rejected",
            path=request.url.path,
            status_code=exc.status_code,
            message=exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request input as a 400 naming the field."""
    message = _describe_validation_error(exc)
    logger.info("request_invalid", path=request.url.path, message=message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"message": message}
    )


async def store_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    """Report a failure of the document store as a 500."""
    logger.error("store_error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Attach the error handlers to the application.

    Args:
        app (FastAPI): Application instance.
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
