"""Validation Error Translation

Turns engine failures into a single structured error indexed by field path.

Error Format (HTTP 400):
{
    "error": {
        "code": "DATA.INVALID",
        "message": "Request contains errors",
        "category": "data",
        "correlation_id": "1a2b3c4d",
        "timestamp": "...",
        "fields": {
            "name": [{"code": "string_too_short", "message": "Name is too short"}],
            "address.city": [{"code": "missing", "message": "Field required"}]
        }
    }
}

Messages declared with ``Messages(...)`` on a field replace the engine's
message for the matching error type. The ``any`` message replaces every
error of its field and collapses them into one entry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, NoReturn

from intake.errors import AppError, AppErrorException, ErrorCode, ErrorContext

from .introspection import SchemaNode
from .schema import ANY_MESSAGE

DEFAULT_MESSAGE = "Please provide valid data"
SUMMARY_MESSAGE = "Request contains errors"


@dataclass(frozen=True, slots=True)
class FieldError:
    """One failure of one field."""
    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(AppErrorException):
    """Structured validation failure (DATA.INVALID).

    ``fields`` maps dotted field paths to their failures, or is None when
    the engine gave no per-field details.
    """

    def __init__(self, message: str = DEFAULT_MESSAGE, fields: dict[str, list[FieldError]] | None = None):
        self.fields = fields
        error = AppError(
            code=ErrorCode.DATA_INVALID,
            message=message,
            context=ErrorContext(origin="validation"),
        )
        if fields:
            error = error.with_metadata(fields={
                path: [entry.to_dict() for entry in entries]
                for path, entries in fields.items()
            })
        super().__init__(error)

    @property
    def message(self) -> str:
        return self.error.message


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render(template: str, ctx: Mapping[str, Any] | None) -> str:
    """Fill ``{placeholders}`` from the error context; unknown ones stay verbatim."""
    if not ctx or "{" not in template:
        return template
    try:
        return template.format_map(_KeepMissing(ctx))
    except (ValueError, IndexError, AttributeError):
        return template


def _polish(message: str, path: str) -> str:
    if path and message.startswith(path) and message[len(path):len(path) + 1] in ("", " ", ":"):
        message = message[len(path):].lstrip(": ")
    return message[:1].upper() + message[1:]


def build_fields(
    details: Iterable[Mapping[str, Any]],
    root: SchemaNode | None = None,
) -> dict[str, list[FieldError]]:
    """Group engine error details by field path, applying custom messages.

    Args:
        details: Error dicts as returned by ``pydantic.ValidationError.errors()``
        root: Schema the details refer to; None disables custom messages
    """
    fields: dict[str, list[FieldError]] = {}
    collapsed: set[str] = set()

    for detail in details:
        loc = detail.get("loc", ())
        path = ".".join(str(segment) for segment in loc)
        if path in collapsed:
            continue

        code = detail.get("type", "value_error")
        message = detail.get("msg", DEFAULT_MESSAGE)
        node = root.lookup(loc) if root is not None else None
        custom = node.messages if node is not None else {}
        if code in custom:
            message = render(custom[code], detail.get("ctx"))
        elif ANY_MESSAGE in custom:
            message = render(custom[ANY_MESSAGE], detail.get("ctx"))
            collapsed.add(path)

        fields.setdefault(path, []).append(FieldError(code=code, message=_polish(message, path)))

    return fields


def translate(
    exc: Exception | None,
    root: SchemaNode | None,
    *,
    extra_details: Iterable[Mapping[str, Any]] = (),
    abort_early: bool = False,
) -> NoReturn:
    """Raise the ValidationError describing ``exc``.

    ``extra_details`` are appended to the engine's own details (the
    pipeline uses them for unknown keys it detects itself).
    """
    errors = getattr(exc, "errors", None)
    details = list(errors()) if callable(errors) else []
    details.extend(extra_details)
    if abort_early:
        details = details[:1]

    if not details:
        raise ValidationError(DEFAULT_MESSAGE) from exc

    raise ValidationError(SUMMARY_MESSAGE, build_fields(details, root)) from exc
