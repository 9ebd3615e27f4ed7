"""Schema Registry

Compiles schema definitions once and caches them for the lifetime of the
process, keyed by an explicit id or by the location of the calling code.

Usage:
    registry = SchemaRegistry()

    def handler(payload):
        # Same line, same compiled schema on every call
        schema = registry.register(lambda: SignUp)
"""
from __future__ import annotations

import functools
import inspect
import sys
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, PydanticUserError, TypeAdapter

from intake.errors import AppErrorException, validation_setup
from intake.logging import get_logger

from .introspection import NodeKind, SchemaNode

log = get_logger(__name__)

# Frames from this package are skipped when deriving call-site ids
_INTERNAL_PACKAGE = __name__.rpartition(".")[0]


@dataclass(frozen=True, slots=True, eq=False)
class CompiledSchema:
    """A registered schema definition with its engine adapter and derived metadata."""
    id: str
    definition: Any
    adapter: TypeAdapter
    node: SchemaNode
    array_fields: tuple[str, ...] = ()

    def __repr__(self) -> str:
        return f"CompiledSchema(id={self.id!r}, definition={self.definition!r})"


def array_paths(node: SchemaNode, path: str = "", _seen: frozenset = frozenset()) -> list[str]:
    """Dotted paths of every array-typed position reachable through object nodes.

    The root is reported as "". Arrays are not descended into.
    """
    paths: list[str] = []
    if node.kind is NodeKind.OBJECT:
        if node.model in _seen:
            return paths
        seen = _seen | {node.model}
        for key, child in node.children():
            paths.extend(array_paths(child, f"{path}.{key}" if path else key, seen))
    elif node.kind is NodeKind.ARRAY:
        paths.append(path)
    return paths


def _call_site() -> str:
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if module != _INTERNAL_PACKAGE and not module.startswith(_INTERNAL_PACKAGE + "."):
            return f"{frame.f_code.co_filename}:{frame.f_lineno}"
        frame = frame.f_back
    return "<unknown>"


def _is_factory(definition: Any) -> bool:
    return inspect.isroutine(definition) or isinstance(definition, functools.partial)


class SchemaRegistry:
    """Process-lifetime map of schema id to CompiledSchema. Entries are never evicted."""

    def __init__(self) -> None:
        self._schemas: dict[str, CompiledSchema] = {}

    def __contains__(self, schema_id: str) -> bool:
        return schema_id in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def get(self, schema_id: str) -> CompiledSchema | None:
        return self._schemas.get(schema_id)

    def register(self, definition: Any | Callable[[], Any], id: str | None = None) -> CompiledSchema | None:
        """Return the schema registered under ``id``, compiling it on first use.

        Without ``id`` the caller's file and line identify the schema. A
        factory is only invoked the first time its id is seen. Returns None
        when the definition (or factory result) is empty.
        """
        schema_id = id or _call_site()
        if (existing := self._schemas.get(schema_id)) is not None:
            return existing

        resolved = definition() if _is_factory(definition) else definition
        if not resolved:
            log.warning("schema_factory_empty", schema=schema_id)
            return None

        compiled = self.compile(resolved, schema_id)
        # First writer wins if two registrations race
        return self._schemas.setdefault(schema_id, compiled)

    def resolve(self, schema: CompiledSchema | str | Any) -> CompiledSchema | None:
        """Find the compiled schema for a schema object, id or model class."""
        if isinstance(schema, CompiledSchema):
            return schema
        if isinstance(schema, str):
            return self._schemas.get(schema)
        if inspect.isclass(schema) and issubclass(schema, BaseModel):
            return self.register(schema, f"model:{schema.__module__}.{schema.__qualname__}")
        return None

    @staticmethod
    def compile(definition: Any, schema_id: str) -> CompiledSchema:
        try:
            adapter = TypeAdapter(definition)
        except PydanticUserError as e:
            raise AppErrorException(validation_setup(
                f"Schema {schema_id} cannot be built: {e}",
                schema=schema_id,
                origin="registry",
            ).error) from e

        node = SchemaNode.of(definition)
        array_fields = tuple(array_paths(node))
        log.debug("schema_registered", schema=schema_id, array_fields=array_fields)
        return CompiledSchema(
            id=schema_id,
            definition=definition,
            adapter=adapter,
            node=node,
            array_fields=array_fields,
        )
