"""Schema-Driven Validation

Schemas are registered once (by explicit id or by call site) and reused
for every request; validation returns clean data or raises a structured,
field-indexed ValidationError.

Key Features:
- Schema registry keyed by id or call site, compiled once
- Array coercion for flat query-string inputs
- Clean or merge result modes
- Per-field custom messages, including a catch-all "any" message
- Extension types: enum, url, domain, email, phone_number, id, model_id
- FastAPI dependencies for bodies and query strings

Usage:
    from intake.validation import BaseSchema, Messages, Validator, ext

    class UserCreate(BaseSchema):
        name: Annotated[str, Field(min_length=3), Messages(any="Please enter your name")]
        email: ext.email()
        tags: list[str] = []

    validator = Validator()
    data = await validator.validate(validator.register(lambda: UserCreate), payload)
"""

from .schema import (
    ANY_MESSAGE,
    BaseSchema,
    Messages,
    with_messages,
)

from .introspection import (
    NodeKind,
    SchemaNode,
)

from .options import ValidationOptions

from .registry import (
    CompiledSchema,
    SchemaRegistry,
    array_paths,
)

from .coercion import coerce_arrays

from .errors import (
    FieldError,
    ValidationError,
    build_fields,
    translate,
)

from .pipeline import (
    Validator,
    get_validator,
    register,
    validate,
)

from . import extensions as ext

from .boundaries import (
    ValidatedBody,
    ValidatedQuery,
    validated_body,
    validated_query,
)

__all__ = [
    # Schema
    "ANY_MESSAGE",
    "BaseSchema",
    "Messages",
    "with_messages",
    "NodeKind",
    "SchemaNode",
    # Registry
    "CompiledSchema",
    "SchemaRegistry",
    "array_paths",
    # Pipeline
    "ValidationOptions",
    "Validator",
    "get_validator",
    "register",
    "validate",
    "coerce_arrays",
    # Errors
    "FieldError",
    "ValidationError",
    "build_fields",
    "translate",
    # Extensions
    "ext",
    # Boundaries
    "ValidatedBody",
    "ValidatedQuery",
    "validated_body",
    "validated_query",
]
