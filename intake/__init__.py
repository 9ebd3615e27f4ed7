# intake module exports
from intake.config import settings, get_settings
from intake.logging import configure_logging, get_logger
from intake.errors import AppError, AppErrorException, ErrorCode, Err, Ok, Result, raise_error, register_error_handlers
from intake.store import ModelStore, get_store, register_store
from intake.validation import (
    BaseSchema,
    CompiledSchema,
    FieldError,
    Messages,
    ValidationError,
    ValidationOptions,
    Validator,
    ext,
    get_validator,
    register,
    validate,
    with_messages,
)
