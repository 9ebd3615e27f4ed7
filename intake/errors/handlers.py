"""FastAPI Exception Handlers

Converts AppErrors (including structured validation errors) and
unexpected exceptions to JSON responses.
"""
from __future__ import annotations

from typing import NoReturn

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from intake.logging import get_logger

from .builders import internal_error
from .types import AppError, ErrorCode, ErrorContext

log = get_logger("intake.errors")


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Raised wherever code does not use the Result monad (the validation
    pipeline, FastAPI dependencies, schema builders).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code


def raise_error(error: AppError) -> NoReturn:
    """Raise AppError as exception.

    Use when you need to exit early from code that doesn't
    use the Result monad.

    Usage:
        if compiled is None:
            raise_error(validation_setup(schema=schema_id).error)
    """
    raise AppErrorException(error)


def result_to_response(error: AppError) -> JSONResponse:
    """Convert AppError to FastAPI JSONResponse."""
    status_code = error.code.http_status

    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
    )

    return JSONResponse(
        status_code=status_code,
        content=error.to_dict(),
    )


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    """Handle AppErrorException raised in route handlers and dependencies."""
    error = exc.error.with_context(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID"),
    )
    return result_to_response(error)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI's own parameter validation failures in the same field-indexed shape."""
    from intake.validation.errors import build_fields

    error = AppError(
        code=ErrorCode.DATA_INVALID,
        message="Request contains errors",
        context=ErrorContext(
            origin="request_validation",
            request_id=request.headers.get("X-Request-ID"),
        ),
        metadata={"fields": {
            path: [entry.to_dict() for entry in entries]
            for path, entries in build_fields(exc.errors()).items()
        }},
    )
    return result_to_response(error)


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions."""
    error = internal_error("An unexpected error occurred", origin="unhandled", cause=exc).error.with_context(
        correlation_id=request.headers.get("X-Correlation-ID"),
        request_id=request.headers.get("X-Request-ID"),
    )

    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )

    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on a FastAPI app.

    Usage:
        app = FastAPI(...)
        register_error_handlers(app)
    """
    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

