"""Schema Building Blocks

BaseSchema is the root for object schemas handed to the validator, and
Messages attaches per-rule human-readable messages to any annotation.

Usage:
    class SignUp(BaseSchema):
        name: Annotated[str, Field(min_length=3), Messages(string_too_short="Name is too short")]
        nickname: Annotated[str, Messages(any="Please pick a nickname")] | None = None
        tags: list[str] = []
"""
from __future__ import annotations

from typing import Annotated, Any, Mapping

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, GetCoreSchemaHandler
from pydantic_core import CoreSchema

# Key used for the catch-all message of a field
ANY_MESSAGE = "any"


class Messages:
    """Annotation marker carrying custom error messages keyed by error type.

    Keys are pydantic error types ("missing", "string_too_short",
    "literal_error", ...) or ANY_MESSAGE, which covers every rule of the
    field. Messages may use "{placeholders}" from the error context.
    The marker is transparent to validation.
    """
    __slots__ = ("items",)

    def __init__(self, mapping: Mapping[str, str] | None = None, /, **messages: str):
        self.items = tuple({**(mapping or {}), **messages}.items())

    def __get_pydantic_core_schema__(self, source_type: Any, handler: GetCoreSchemaHandler) -> CoreSchema:
        return handler(source_type)

    def as_dict(self) -> dict[str, str]:
        return dict(self.items)

    def __repr__(self) -> str:
        return f"Messages({self.as_dict()!r})"


def with_messages(tp: Any, mapping: Mapping[str, str] | None = None, /, **messages: str) -> Any:
    """Return ``tp`` annotated with custom messages."""
    return Annotated[tp, Messages(mapping, **messages)]


class BaseSchema(PydanticBaseModel):
    """Base for object schemas.

    Unknown keys are kept by the engine so the validator can decide per
    call whether to reject, strip or pass them through.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        use_enum_values=True,
        from_attributes=True,
    )
