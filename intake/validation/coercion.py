"""Array Coercion

Query strings deliver arrays as a single value ("?tags=a,b") or a scalar
("?tags=a"). Before validation, every array-typed path of a schema is
normalized into a list:

- "a,b , c" -> ["a", "b", "c"]
- "a"       -> ["a"]
- 5         -> [5]

Missing and null values are left alone so the engine can report them.
Coercion never mutates the caller's input; mappings along a coerced
path are copied.
"""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from intake.logging import get_logger

log = get_logger(__name__)

_ARRAY_VALUES = (list, tuple)


def _as_array(value: Any) -> Any:
    if value is None or isinstance(value, _ARRAY_VALUES):
        return value
    if isinstance(value, str) and "," in value:
        return [part.strip() for part in value.split(",")]
    return [value]


def _coerce_path(data: Mapping[str, Any], segments: list[str]) -> Mapping[str, Any]:
    """Return ``data`` with the value at ``segments`` coerced, copying along the way."""
    *parents, last = segments

    # Check the path exists before copying anything
    cursor: Any = data
    for segment in parents:
        if not isinstance(cursor, Mapping) or segment not in cursor:
            return data
        cursor = cursor[segment]
    if not isinstance(cursor, Mapping) or last not in cursor:
        return data
    coerced = _as_array(cursor[last])
    if coerced is cursor[last]:
        return data

    root = dict(data)
    cursor = root
    for segment in parents:
        cursor[segment] = dict(cursor[segment])
        cursor = cursor[segment]
    cursor[last] = coerced
    return root


def coerce_arrays(array_fields: Sequence[str], data: Any) -> Any:
    """Normalize every path in ``array_fields`` of ``data`` into a list.

    Args:
        array_fields: Dotted paths of array-typed positions; "" is the root
        data: Raw input

    Returns:
        The coerced input. Paths that cannot be coerced are skipped.
    """
    for path in array_fields:
        if path == "":
            return data if isinstance(data, _ARRAY_VALUES) else [data]
        if not isinstance(data, Mapping):
            return data
        try:
            data = _coerce_path(data, path.split("."))
        except Exception as e:
            log.debug("array_coercion_skipped", path=path, error=str(e))
    return data
