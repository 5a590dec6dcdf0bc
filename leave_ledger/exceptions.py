import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class InvalidPolicyRule(AppError):
    """The accrual rule or carry-over cap of a policy is not usable."""

    def __init__(self, message: str = "Invalid accrual rule") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidPeriod(AppError):
    """A period or date span is empty or reversed."""

    def __init__(self, message: str = "Period end must be after period start") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidRequest(AppError):
    """A leave request is inconsistent with its policy."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class NoBalancePeriod(AppError):
    """No ledger entry covers the given date."""

    def __init__(self, message: str = "No balance period covers this date") -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class InsufficientBalance(AppError):
    """The balance cannot cover the requested amount."""

    def __init__(self, message: str = "Insufficient balance") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidTransition(AppError):
    """The request is not in a state that allows the action."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class DuplicatePolicyCode(AppError):
    def __init__(self, message: str = "Policy with this code already exists for this company") -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class NotFound(AppError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class Forbidden(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class StorageError(AppError):
    """The backing store failed; the operation may be retried."""

    def __init__(self, message: str = "Storage unavailable, please retry") -> None:
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


async def _storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    storage_error = StorageError()
    return await _app_exception_handler(request, storage_error)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _storage_exception_handler)  # type: ignore[arg-type]
