"""
Domain exceptions and their HTTP translation.

Services raise the exceptions below and never build HTTP responses.
register_exception_handlers() maps them onto JSON bodies shaped
{"message": ..., "errors": [...]} at the routing boundary.

SECURITY PRINCIPLE: Don't expose internal details to users.
Use generic error messages externally, detailed logging internally.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base class for errors the API reports to callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(PharmacyError):
    """
    Malformed or inconsistent input (400).

    OK to include specific details here since user caused the issue.
    Each entry of ``errors`` names a ``field`` and a ``message``.
    """

    status_code = status.HTTP_400_BAD_REQUEST

    @classmethod
    def for_field(cls, field: str, message: str, summary: str = "Invalid request data") -> "ValidationError":
        return cls(summary, errors=[{"field": field, "message": message}])


class InsufficientStockError(ValidationError):
    """A franchise does not hold enough units of a product for an order."""

    def __init__(self, shortages: List[Dict[str, Any]]):
        super().__init__("Insufficient stock", errors=shortages)


class NotFoundError(PharmacyError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class AuthenticationError(PharmacyError):
    """
    Generic 401 for all authentication failures.

    SECURITY: Same response for wrong password, non-existent user, etc.
    Prevents user enumeration attacks.
    """

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class PermissionDeniedError(PharmacyError):
    """403 for cross-franchise access or admin-only operations."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ConflictError(PharmacyError):
    """409 for resource conflicts, e.g. a duplicate order number."""

    status_code = status.HTTP_409_CONFLICT


async def pharmacy_error_handler(request: Request, exc: PharmacyError) -> JSONResponse:
    if isinstance(exc, AuthenticationError):
        logger.warning(f"Unauthorized access attempt: {request.method} {request.url.path}")
    elif isinstance(exc, (NotFoundError, PermissionDeniedError)):
        logger.warning(f"{exc.message}: {request.method} {request.url.path}")
    else:
        logger.info(f"{type(exc).__name__}: {exc.message} {exc.errors}")

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_body()), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Pydantic body/query failures use the same 400 shape as service validation."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    logger.info(f"Bad request on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request data", "errors": errors},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic 500 - logs actual error internally, hides from user.

    SECURITY: Never expose stack traces, SQL errors, or internal paths to users.
    """
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "An internal error occurred. Please try again later."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PharmacyError, pharmacy_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
