"""
Global exception handlers and custom exception classes.

Every error leaves the API as ``{"ok": false, "error": "<code>"}`` with an
optional ``details`` field.
"""
from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, error: str, details: Optional[Any] = None):
        self.status_code = status_code
        self.error = error
        self.details = details


class MissingTokenException(AppException):
    """Raised when a request carries no bearer token."""
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "missing_token")


class InvalidTokenException(AppException):
    """Raised when a bearer token fails verification or lacks its identity claim."""
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "invalid_token")


class RoleRequiredException(AppException):
    """Raised when the token role does not match the endpoint, e.g. ``admin_required``."""
    def __init__(self, role: str):
        super().__init__(status.HTTP_403_FORBIDDEN, f"{role.lower()}_required")


class UnauthorizedException(AppException):
    def __init__(self, error: str):
        super().__init__(status.HTTP_401_UNAUTHORIZED, error)


class ForbiddenException(AppException):
    def __init__(self, error: str = "access_denied"):
        super().__init__(status.HTTP_403_FORBIDDEN, error)


class BadRequestException(AppException):
    def __init__(self, error: str, details: Optional[Any] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, error, details)


class NotFoundException(AppException):
    def __init__(self, error: str):
        super().__init__(status.HTTP_404_NOT_FOUND, error)


class ConflictException(AppException):
    def __init__(self, error: str):
        super().__init__(status.HTTP_409_CONFLICT, error)


class OperationFailedException(AppException):
    """Raised when a write against the store fails, e.g. ``create_failed``."""
    def __init__(self, error: str, details: Optional[Any] = None):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, error, details)


def error_body(error: str, details: Optional[Any] = None) -> dict:
    body = {"ok": False, "error": error}
    if details is not None:
        body["details"] = details
    return body


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code >= 500:
        logger.error(f"Application error on {request.url.path}: {exc.error} {exc.details or ''}")
    else:
        logger.info(f"Request rejected on {request.url.path}: {exc.error}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error, exc.details)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Absent required fields map to ``missing_fields``; anything else (wrong type,
    value outside an enum) maps to ``invalid_fields``.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    errors = exc.errors()
    logger.warning(f"Validation error: {errors}")
    missing = any(err.get("type") == "missing" for err in errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "missing_fields" if missing else "invalid_fields",
            jsonable_encoder([
                {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg")}
                for err in errors
            ])
        )
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render framework-raised HTTP errors (404 route, 405 method) in the same envelope."""
    codes = {
        status.HTTP_404_NOT_FOUND: "not_found",
        status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(codes.get(exc.status_code, str(exc.detail)))
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error")
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
