"""Validation Pipeline

resolve schema -> coerce arrays -> check unknown keys -> validate -> reconcile

Usage:
    validator = Validator()

    async def create_user(payload: dict):
        schema = validator.register(lambda: UserCreate)
        data = await validator.validate(schema, payload)

    # Keep the caller's own keys and write the validated values over them
    merged = await validator.validate("user.create", payload, clean=False)
"""
from __future__ import annotations

from functools import lru_cache, partial
from typing import Any, Callable, Iterator, Mapping, MutableMapping

from pydantic import BaseModel, ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from intake.config import Settings, get_settings
from intake.errors import (
    AppError,
    ErrorCode,
    Result,
    raise_error,
    try_result_async,
    validation_setup,
)
from intake.logging import get_logger

from .coercion import coerce_arrays
from .errors import translate
from .introspection import NodeKind, SchemaNode
from .options import ValidationOptions
from .registry import CompiledSchema, SchemaRegistry

EXTRA_FORBIDDEN = "extra_forbidden"


def unknown_keys(node: SchemaNode, data: Any, loc: tuple = ()) -> Iterator[dict[str, Any]]:
    """Yield an ``extra_forbidden`` error detail for every key the schema does not declare.

    Objects whose model already forbids extras are left to the engine.
    """
    kind = node.kind
    if kind is NodeKind.OBJECT:
        if not isinstance(data, Mapping) or node.extra_policy == "forbid":
            return
        for key, value in data.items():
            child = node.child(key)
            if child is None:
                yield {
                    "type": EXTRA_FORBIDDEN,
                    "loc": (*loc, key),
                    "msg": "Extra inputs are not permitted",
                    "input": value,
                }
            else:
                yield from unknown_keys(child, value, (*loc, key))
    elif kind is NodeKind.MAPPING and isinstance(data, Mapping):
        for key, value in data.items():
            yield from unknown_keys(node.child(key), value, (*loc, key))
    elif kind is NodeKind.ARRAY and isinstance(data, (list, tuple)):
        for index, item in enumerate(data):
            if (child := node.child(index)) is not None:
                yield from unknown_keys(child, item, (*loc, index))


def _has_default(field: FieldInfo) -> bool:
    if field.default_factory is not None:
        return True
    return field.default is not PydanticUndefined and field.default is not None


def to_plain(value: Any, *, strip_unknown: bool = True, no_defaults: bool = False) -> Any:
    """Convert an engine result to plain dicts and lists keyed the way input names them.

    Fields the input did not provide are emitted only when they have a
    non-null default and ``no_defaults`` is off.
    """
    convert = partial(to_plain, strip_unknown=strip_unknown, no_defaults=no_defaults)

    if isinstance(value, BaseModel):
        plain: dict[str, Any] = {}
        provided = value.model_fields_set
        for name, field in type(value).model_fields.items():
            if name in provided or (not no_defaults and _has_default(field)):
                plain[field.alias or name] = convert(getattr(value, name))
        if not strip_unknown and value.model_extra:
            for key, extra in value.model_extra.items():
                plain[key] = convert(extra)
        return plain
    if isinstance(value, Mapping):
        return {key: convert(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(convert(item) for item in value)
    return value


class Validator:
    """Validates input against registered schemas.

    Options resolve per call as Settings defaults -> ``options`` given
    here -> keyword arguments of ``validate``.
    """

    def __init__(
        self,
        options: ValidationOptions | None = None,
        *,
        registry: SchemaRegistry | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.registry = registry if registry is not None else SchemaRegistry()
        self.options = ValidationOptions.from_settings(settings).merge(options)
        self.log = get_logger(settings.LOGGER_NAME)

    def register(self, definition: Any | Callable[[], Any], id: str | None = None) -> CompiledSchema | None:
        """See ``SchemaRegistry.register``. Without ``id`` the caller's line is the key."""
        return self.registry.register(definition, id)

    async def validate(self, schema: CompiledSchema | str | type[BaseModel], data: Any = None, **options: Any) -> Any:
        """Validate ``data`` against ``schema`` and return the cleaned data.

        Args:
            schema: A CompiledSchema, a registered id or a model class
            data: Raw input; None validates an empty object
            **options: Per-call ValidationOptions fields

        Raises:
            AppErrorException: DATA.VALIDATION when the schema cannot be resolved
            ValidationError: DATA.INVALID, with per-field details when the engine reports them
        """
        compiled = self.registry.resolve(schema)
        if compiled is None:
            raise_error(validation_setup(
                schema=schema if isinstance(schema, str) else None,
                origin="pipeline",
            ).error)

        opts = self.options.merge(ValidationOptions(**options))
        source = {} if data is None else data
        value = coerce_arrays(compiled.array_fields, source) if compiled.array_fields else source
        unknown = [] if opts.allow_unknown else list(unknown_keys(compiled.node, value))

        try:
            result = compiled.adapter.validate_python(value, **opts.engine_kwargs())
        except PydanticValidationError as e:
            self.log.info("validation_failed", schema=compiled.id, errors=e.error_count() + len(unknown))
            translate(e, compiled.node, extra_details=unknown, abort_early=bool(opts.abort_early))
        except Exception as e:
            self.log.warning("validation_engine_error", schema=compiled.id, error_type=type(e).__name__, error=str(e))
            translate(e, compiled.node)

        if unknown:
            self.log.info("validation_failed", schema=compiled.id, errors=len(unknown))
            translate(None, compiled.node, extra_details=unknown, abort_early=bool(opts.abort_early))

        plain = to_plain(result, strip_unknown=bool(opts.strip_unknown), no_defaults=bool(opts.no_defaults))
        if opts.clean is not False or not isinstance(source, MutableMapping) or not isinstance(plain, Mapping):
            return plain

        for key, item in plain.items():
            source[key] = item
        return source

    async def validate_result(
        self,
        schema: CompiledSchema | str | type[BaseModel],
        data: Any = None,
        **options: Any,
    ) -> Result[Any, AppError]:
        """Like ``validate`` but returns Ok(data) or Err(AppError) instead of raising."""
        return await try_result_async(
            lambda: self.validate(schema, data, **options),
            code=ErrorCode.DATA_INVALID,
            origin="pipeline",
        )


@lru_cache
def get_validator() -> Validator:
    """Process-wide validator used by the module-level helpers."""
    return Validator()


def register(definition: Any | Callable[[], Any], id: str | None = None) -> CompiledSchema | None:
    return get_validator().register(definition, id)


async def validate(schema: CompiledSchema | str | type[BaseModel], data: Any = None, **options: Any) -> Any:
    return await get_validator().validate(schema, data, **options)
