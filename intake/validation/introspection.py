"""Schema Introspection

A read-only view over pydantic schema definitions used by the registry
(array field discovery), the pipeline (unknown key detection) and the
error translator (per-field messages). Nodes are built from type
annotations: ``Annotated`` wrappers and ``Optional`` are unwrapped and
their metadata collected on the node.
"""
from __future__ import annotations

import collections.abc
import types
from dataclasses import dataclass
from enum import Enum
from inspect import isclass
from typing import Annotated, Any, Iterator, Sequence, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from .schema import Messages

_ARRAY_TYPES = (
    list, tuple, set, frozenset,
    collections.abc.Sequence, collections.abc.MutableSequence,
    collections.abc.Set, collections.abc.MutableSet,
)
_MAPPING_TYPES = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


class NodeKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    MAPPING = "mapping"
    SCALAR = "scalar"


@dataclass(frozen=True, slots=True)
class SchemaNode:
    """One position in a schema tree."""
    annotation: Any
    metadata: tuple = ()

    @classmethod
    def of(cls, annotation: Any, metadata: Sequence[Any] = ()) -> SchemaNode:
        meta = list(metadata)
        while True:
            origin = get_origin(annotation)
            if origin is Annotated:
                annotation, *extra = get_args(annotation)
                # Inner metadata first so outer annotations take precedence
                meta = extra + meta
                continue
            if origin in (Union, types.UnionType):
                args = get_args(annotation)
                non_null = [arg for arg in args if arg is not type(None)]
                if len(non_null) == 1 and len(non_null) < len(args):
                    annotation = non_null[0]
                    continue
            break
        return cls(annotation, tuple(meta))

    @classmethod
    def for_field(cls, field: FieldInfo) -> SchemaNode:
        return cls.of(field.annotation, field.metadata)

    @property
    def model(self) -> type[BaseModel] | None:
        if isclass(self.annotation) and issubclass(self.annotation, BaseModel):
            return self.annotation
        return None

    @property
    def kind(self) -> NodeKind:
        if self.model is not None:
            return NodeKind.OBJECT
        container = get_origin(self.annotation) or self.annotation
        if container in _ARRAY_TYPES:
            return NodeKind.ARRAY
        if container in _MAPPING_TYPES:
            return NodeKind.MAPPING
        return NodeKind.SCALAR

    @property
    def messages(self) -> dict[str, str]:
        """Custom messages declared on this node, outermost declaration winning."""
        merged: dict[str, str] = {}
        for item in self.metadata:
            if isinstance(item, Messages):
                merged.update(item.as_dict())
        return merged

    @property
    def extra_policy(self) -> str | None:
        """The model's own handling of unknown keys ("allow", "ignore", "forbid")."""
        if self.model is None:
            return None
        return self.model.model_config.get("extra")

    def children(self) -> Iterator[tuple[str, SchemaNode]]:
        """Named children of an object node, keyed the way input data names them."""
        if self.model is None:
            return
        for name, field in self.model.model_fields.items():
            yield field.alias or name, SchemaNode.for_field(field)

    def child(self, key: str | int) -> SchemaNode | None:
        kind = self.kind
        if kind is NodeKind.OBJECT:
            for name, field in self.model.model_fields.items():
                if key == name or key == field.alias or key == field.validation_alias:
                    return SchemaNode.for_field(field)
            return None
        if kind is NodeKind.MAPPING:
            args = get_args(self.annotation)
            return SchemaNode.of(args[1] if len(args) == 2 else Any)
        if kind is NodeKind.ARRAY:
            return self._item(key)
        return None

    def _item(self, key: str | int) -> SchemaNode | None:
        try:
            index = int(key)
        except (TypeError, ValueError):
            return None
        args = get_args(self.annotation)
        if not args:
            return SchemaNode.of(Any)
        if get_origin(self.annotation) is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            return SchemaNode.of(args[index]) if 0 <= index < len(args) else None
        return SchemaNode.of(args[0])

    def lookup(self, path: Sequence[str | int]) -> SchemaNode | None:
        """Walk ``path`` from this node; None if any step does not resolve."""
        node: SchemaNode | None = self
        for segment in path:
            node = node.child(segment)
            if node is None:
                return None
        return node
