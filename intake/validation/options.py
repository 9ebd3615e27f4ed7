"""Layered Validation Options

Options resolve in three layers, later layers winning field by field:
process defaults (Settings) -> Validator instance -> individual call.
A field left as None defers to the layer below.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from intake.config import Settings

STRICT_CONTEXT_KEY = "intake.strict"


def is_strict(context: Any) -> bool | None:
    """Strict flag the pipeline left in the validation context, for nested validate calls."""
    if isinstance(context, dict) and context.get(STRICT_CONTEXT_KEY):
        return True
    return None


@dataclass(frozen=True, slots=True)
class ValidationOptions:
    """Options understood by the validation pipeline.

    clean: return the engine's cleaned value (True) or merge it onto the input (False)
    allow_unknown: accept keys the schema does not declare
    strip_unknown: drop accepted unknown keys from the result
    abort_early: report only the first failure
    convert: let the engine coerce types (lax mode); False validates strictly
    no_defaults: omit fields the input did not provide, even those with defaults
    context: passed through to validators as ``info.context``
    from_attributes: passed through to the engine for object inputs
    """
    clean: bool | None = None
    allow_unknown: bool | None = None
    strip_unknown: bool | None = None
    abort_early: bool | None = None
    convert: bool | None = None
    no_defaults: bool | None = None
    context: dict[str, Any] | None = None
    from_attributes: bool | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ValidationOptions:
        return cls(
            clean=True,
            allow_unknown=settings.VALIDATION_ALLOW_UNKNOWN,
            strip_unknown=settings.VALIDATION_STRIP_UNKNOWN,
            abort_early=settings.VALIDATION_ABORT_EARLY,
            convert=settings.VALIDATION_CONVERT,
            no_defaults=settings.VALIDATION_NO_DEFAULTS,
        )

    def merge(self, other: ValidationOptions | None) -> ValidationOptions:
        """Overlay ``other`` on these options; its non-None fields win."""
        if other is None:
            return self
        overrides = {
            f.name: value
            for f in fields(other)
            if (value := getattr(other, f.name)) is not None
        }
        return replace(self, **overrides)

    def engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``TypeAdapter.validate_python``."""
        kwargs: dict[str, Any] = {}
        context = self.context
        if self.convert is False:
            kwargs["strict"] = True
            context = {**(context or {}), STRICT_CONTEXT_KEY: True}
        if context is not None:
            kwargs["context"] = context
        if self.from_attributes is not None:
            kwargs["from_attributes"] = self.from_attributes
        return kwargs
