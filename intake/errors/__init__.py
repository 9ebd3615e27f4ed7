"""Monadic Error Handling System

Key components:
- Result[T, E]: Monadic container for success/failure
- AppError: Base error type with full context
- ErrorCode: Dotted error code taxonomy (DATA.INVALID, DATA.VALIDATION, DATA.MODEL)
- Builder functions: Ergonomic error construction

Usage:
    from intake.errors import Ok, Err, Result, AppError, validation_setup

    result = await validator.validate_result(schema, payload)
    match result:
        case Ok(data):
            ...
        case Err(error):
            log.warning(error.message, code=error.code.value)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    from_exception,
    try_result_async,
)

from .builders import (
    data_invalid,
    validation_setup,
    model_resolution,
    internal_error,
)

from .handlers import (
    AppErrorException,
    raise_error,
    register_error_handlers,
    result_to_response,
)

__all__ = [
    # Core types
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "from_exception",
    "try_result_async",
    # Builders
    "data_invalid",
    "validation_setup",
    "model_resolution",
    "internal_error",
    # Handlers
    "AppErrorException",
    "raise_error",
    "register_error_handlers",
    "result_to_response",
]
