import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from expenseflow.config import get_settings

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(AppError):
    """Malformed or inconsistent input that passed schema validation."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidLevelsError(InvalidInputError):
    """Approval level count outside the supported range."""


class OverlappingRangeError(AppError):
    """An active approval flow already covers part of the requested amount range."""

    status_code = status.HTTP_400_BAD_REQUEST


class NoApproverAvailableError(AppError):
    """The manager chain ran out and the company has no active admin to fall back on."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundOrNotAuthorizedError(AppError):
    """No pending approval exists for the caller on this expense."""

    status_code = status.HTTP_404_NOT_FOUND


class StaleApprovalLevelError(AppError):
    """The decision targets a level that is no longer the expense's current level."""

    status_code = status.HTTP_400_BAD_REQUEST


class MissingCommentsError(AppError):
    """A rejection was attempted without a reason."""

    status_code = status.HTTP_400_BAD_REQUEST


class ExpenseLockedError(AppError):
    """The expense has left the pending state and can no longer be edited."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


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


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # Internal details are only exposed in debug mode.
    detail = str(exc) if get_settings().debug else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="InternalServerError",
            detail=detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
