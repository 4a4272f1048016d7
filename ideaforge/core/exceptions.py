from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from ideaforge.domain.errors import (
    AuthorizationError,
    BusinessRuleViolationError,
    ConcurrentUpdateError,
    DatabaseError,
    DomainError,
    DuplicateEntityError,
    EntityNotFoundError,
    InsufficientCreditsError,
    InvariantViolationError,
    ValidationError,
)


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED", status_code=status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN", status_code=status.HTTP_403_FORBIDDEN)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class GenerationFailedError(AppError):
    def __init__(self, message: str = "Document generation failed", details: dict[str, Any] | None = None):
        super().__init__(message, code="GENERATION_FAILED", status_code=status.HTTP_502_BAD_GATEWAY, details=details)


# Most specific classes first; the first isinstance match wins.
_DOMAIN_STATUS: list[tuple[type[DomainError], int]] = [
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (InsufficientCreditsError, status.HTTP_402_PAYMENT_REQUIRED),
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT),
    (DuplicateEntityError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvariantViolationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (BusinessRuleViolationError, status.HTTP_400_BAD_REQUEST),
    (DatabaseError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def domain_status_code(exc: DomainError) -> int:
    for cls, code in _DOMAIN_STATUS:
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_for_failure(error: Exception) -> None:
    """Re-raise a use-case failure so the registered handlers render it."""
    if isinstance(error, (DomainError, AppError)):
        raise error
    raise GenerationFailedError(details={"reason": str(error)}) from error


def _error_body(request: Request, message: str, code: str, details: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": {
            "message": message,
            "code": code,
            "details": details,
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return body


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.code, exc.details),
    )


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    return error_response(request, exc)


async def domain_exception_handler(request: Request, exc: DomainError) -> ORJSONResponse:
    details: dict[str, Any] = {}
    if isinstance(exc, ValidationError) and exc.validation_errors:
        details["errors"] = exc.validation_errors
    return ORJSONResponse(
        status_code=domain_status_code(exc),
        content=_error_body(request, exc.message, exc.code, details),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, "Validation error", "VALIDATION_ERROR", {"errors": jsonable_encoder(exc.errors())}),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from ideaforge.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "Internal server error", "INTERNAL_ERROR", {}),
    )
