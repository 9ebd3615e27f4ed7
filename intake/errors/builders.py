"""Domain-Specific Error Builders

Ergonomic constructors for typed errors. Each builder creates an
AppError with the appropriate code and context, wrapped in Err.
"""
from .types import AppError, ErrorCode, ErrorContext, Err


def data_invalid(
    message: str = "Please provide valid data",
    *,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    """Create a data validation error."""
    return Err(AppError(
        code=ErrorCode.DATA_INVALID,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in metadata.items() if v is not None},
        cause=cause,
    ))


def validation_setup(
    message: str = "Invalid or missing schema definition",
    *,
    schema: str | None = None,
    origin: str = "",
) -> Err[AppError]:
    """Create an error for a schema that cannot be resolved or built."""
    meta = {"schema": schema}
    return Err(AppError(
        code=ErrorCode.VALIDATION_SETUP,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def model_resolution(
    message: str,
    *,
    store: str | None = None,
    model: str | None = None,
    field: str | None = None,
    origin: str = "",
) -> Err[AppError]:
    """Create an error for a store, model or field that cannot be resolved."""
    meta = {"store": store, "model": model, "field": field}
    return Err(AppError(
        code=ErrorCode.MODEL_RESOLUTION,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def internal_error(
    message: str,
    *,
    origin: str = "",
    cause: Exception | None = None,
) -> Err[AppError]:
    return Err(AppError(
        code=ErrorCode.INTERNAL,
        message=message,
        context=ErrorContext(origin=origin),
        cause=cause,
    ))
