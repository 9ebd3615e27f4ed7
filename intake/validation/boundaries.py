"""Validation at HTTP Boundaries

FastAPI dependencies that run request bodies and query strings through
the validation pipeline. Failures raise the structured ValidationError,
rendered by ``intake.errors.register_error_handlers``.

Usage:
    @router.post("/users")
    async def create_user(body: Annotated[dict, Depends(ValidatedBody(UserCreate))]):
        ...

    @router.get("/users")
    async def list_users(query: dict = validated_query(UserFilter)):
        # ?tags=a,b and ?tags=a&tags=b both arrive as ["a", "b"]
        ...
"""
from typing import Any

from fastapi import Depends, Request

from intake.errors import AppErrorException, data_invalid

from .pipeline import Validator, get_validator
from .registry import CompiledSchema


class _Boundary:
    __slots__ = ("schema", "validator", "options")

    def __init__(self, schema: Any, *, validator: Validator | None = None, **options: Any):
        self.validator = validator or get_validator()
        self.options = options
        if isinstance(schema, (str, CompiledSchema)):
            self.schema = schema
        else:
            self.schema = self.validator.registry.resolve(schema) or self.validator.register(schema)

    async def validate(self, data: Any) -> Any:
        return await self.validator.validate(self.schema, data, **self.options)


class ValidatedBody(_Boundary):
    """FastAPI dependency for a validated JSON request body."""

    async def __call__(self, request: Request) -> Any:
        body = await request.body()
        try:
            data = await request.json() if body else None
        except ValueError as e:
            raise AppErrorException(
                data_invalid(f"Invalid JSON in request body: {e}", origin="body", cause=e).error
            ) from e
        return await self.validate(data)


class ValidatedQuery(_Boundary):
    """FastAPI dependency for a validated query string. Repeated keys become lists."""

    async def __call__(self, request: Request) -> Any:
        data: dict[str, Any] = {}
        for key, value in request.query_params.multi_items():
            if key not in data:
                data[key] = value
            elif isinstance(data[key], list):
                data[key].append(value)
            else:
                data[key] = [data[key], value]
        return await self.validate(data)


def validated_body(schema: Any, *, validator: Validator | None = None, **options: Any) -> Any:
    """``Depends`` wrapper around ValidatedBody.

    Usage:
        async def create_user(body: dict = validated_body(UserCreate)): ...
    """
    return Depends(ValidatedBody(schema, validator=validator, **options))


def validated_query(schema: Any, *, validator: Validator | None = None, **options: Any) -> Any:
    return Depends(ValidatedQuery(schema, validator=validator, **options))
