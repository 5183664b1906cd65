"""
Error taxonomy and FastAPI exception handlers.

Services raise ApiError subclasses; the handlers registered by
install_error_handlers() turn them into the JSON error envelope.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .responses import error_response

GENERIC_SERVER_ERROR = "Internal server error"


class ApiError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = GENERIC_SERVER_ERROR

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid email or password"


class AccountDisabled(AuthenticationError):
    default_message = "Account disabled"


class AuthorizationError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class DuplicateEmail(ConflictError):
    default_message = "Email already in use"


class SlugTaken(ConflictError):
    default_message = "Slug already in use"


class DuplicateSerial(ConflictError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Serial number already exists"


class AlreadyActivated(ConflictError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Card already activated by another user"


class InvalidOrExpiredToken(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired token"


class InvalidTransition(ValidationError):
    default_message = "Invalid status transition"


class ServerError(ApiError):
    pass


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    msg = str(first.get("msg") or ValidationError.default_message)
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, ") :]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
        return JSONResponse(error_response(GENERIC_SERVER_ERROR), status_code=exc.status_code)
    return JSONResponse(error_response(exc.message), status_code=exc.status_code)


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(error_response(_first_validation_message(exc)), status_code=status.HTTP_400_BAD_REQUEST)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        error_response(str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return JSONResponse(error_response(GENERIC_SERVER_ERROR), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
