"""Extension Types

Reusable field types for common request data, built from pydantic's
Annotated composition. Every builder returns a type usable as a model
field annotation or as a schema of its own.

Usage:
    from intake import BaseSchema, ext

    class Signup(BaseSchema):
        plan: ext.enum(["FREE", "PRO"])
        website: ext.url() | None = None
        email: ext.email()
        phone: ext.phone_number()
        account_id: ext.model_id("account")
"""
from __future__ import annotations

import re
from enum import Enum
from functools import partial
from inspect import isclass
from typing import Annotated, Any, Iterable, Literal, Mapping, Optional
from urllib.parse import urlsplit

import phonenumbers
from pydantic import AfterValidator, Field, PlainValidator, StringConstraints, TypeAdapter, ValidationInfo
from pydantic import ValidationError as PydanticValidationError
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from intake.config import settings
from intake.errors import AppError, AppErrorException, model_resolution, validation_setup
from intake.logging import get_logger
from intake.store import ModelStore, get_store

from .options import is_strict
from .schema import Messages

log = get_logger(__name__)

URL_MESSAGE = "Please provide a valid URL"
DOMAIN_MESSAGE = "Please provide a valid domain"
PHONE_MESSAGE = "Please provide a valid phone number"

_DOMAIN_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$", re.IGNORECASE)
_TLD = re.compile(r"^[a-z]{2,63}$", re.IGNORECASE)
_ALPHANUMERIC = re.compile(r"^[a-z0-9]+$", re.IGNORECASE)
_DIGITS = r"^\d+$"


# ============================================================================
# Composition
# ============================================================================

def alternatives(*choices: Any, message: str | None = None) -> Any:
    """Accept the first of ``choices`` the value validates against.

    Fails with ``alternatives_types`` when none match. Unlike a plain
    union, errors stay at the field's own path.
    """
    adapters = [TypeAdapter(choice) for choice in choices]

    def check(value: Any, info: ValidationInfo) -> Any:
        strict = is_strict(info.context)
        for adapter in adapters:
            try:
                return adapter.validate_python(value, strict=strict, context=info.context)
            except PydanticValidationError:
                continue
        raise PydanticCustomError(
            "alternatives_types",
            message or "Value does not match any of the allowed types",
        )

    return Annotated[Any, PlainValidator(check)]


# ============================================================================
# Strings
# ============================================================================

def enum(values: Iterable[str] | Mapping[str, Any] | type[Enum]) -> Any:
    """String restricted to ``values``: a list, the keys of a mapping or the member names of an Enum."""
    if isclass(values) and issubclass(values, Enum):
        names = tuple(member.name for member in values)
    else:
        names = tuple(values)
    if not names:
        raise AppErrorException(validation_setup("enum() needs at least one value", origin="extensions").error)
    return Literal[names]


def _check_uri(value: str, *, schemes: tuple[str, ...], min_domain_segments: int, max_domain_segments: int) -> str:
    if any(char.isspace() for char in value):
        raise PydanticCustomError("url_parsing", "Value contains whitespace")
    try:
        parts = urlsplit(value)
        parts.port
    except ValueError as e:
        raise PydanticCustomError("url_parsing", "Port is not valid") from e
    if parts.scheme.lower() not in schemes:
        raise PydanticCustomError(
            "url_scheme", "URL scheme should be one of {expected_schemes}",
            {"expected_schemes": ", ".join(schemes)},
        )
    labels = (parts.hostname or "").split(".")
    if not min_domain_segments <= len(labels) <= max_domain_segments:
        raise PydanticCustomError("url_domain", "Domain should have between {min} and {max} segments",
                                  {"min": min_domain_segments, "max": max_domain_segments})
    if not all(_DOMAIN_LABEL.match(label) for label in labels) or not _TLD.match(labels[-1]):
        raise PydanticCustomError("url_domain", "Domain is not valid")
    return value


def url(
    schemes: Iterable[str] = ("http", "https"),
    min_domain_segments: int = 2,
    max_domain_segments: int = 10,
) -> Any:
    """Publicly reachable URL: allowed scheme and a host of 2-10 labels with a real TLD."""
    check = partial(
        _check_uri,
        schemes=tuple(scheme.lower() for scheme in schemes),
        min_domain_segments=min_domain_segments,
        max_domain_segments=max_domain_segments,
    )
    return Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(check), Messages(any=URL_MESSAGE)]


def _normalize_domain(value: str) -> str:
    if "://" in value:
        value = value.split("://", 1)[1]
    value = value.split("?")[0].split("/")[0]
    if value.startswith("www."):
        value = value[4:]
    return "https://" + value.lower()


def _strip_scheme(value: str) -> str:
    return value.split("://", 1)[1]


def domain(min_domain_segments: int = 2, max_domain_segments: int = 10) -> Any:
    """Bare domain ("example.com") from a domain or URL; scheme, path, query and "www." are dropped."""
    check = partial(
        _check_uri,
        schemes=("https",),
        min_domain_segments=min_domain_segments,
        max_domain_segments=max_domain_segments,
    )
    return Annotated[
        str,
        StringConstraints(strip_whitespace=True),
        AfterValidator(_normalize_domain),
        AfterValidator(check),
        AfterValidator(_strip_scheme),
        Messages(any=DOMAIN_MESSAGE),
    ]


def _check_email(value: str) -> str:
    _, address = validate_email(value)
    return address.lower()


def email(**constraints: Any) -> Any:
    """Trimmed, lower-cased email address."""
    return Annotated[
        str,
        StringConstraints(strip_whitespace=True, to_lower=True, **constraints),
        AfterValidator(_check_email),
    ]


def _check_phone(value: str) -> str:
    if value.startswith("00"):
        value = "+" + value[2:]
    elif not value.startswith("+"):
        value = "+" + value
    try:
        number = phonenumbers.parse(value, None)
    except phonenumbers.NumberParseException as e:
        raise PydanticCustomError("phone_number", PHONE_MESSAGE) from e
    if not phonenumbers.is_valid_number(number):
        raise PydanticCustomError("phone_number", PHONE_MESSAGE)
    return phonenumbers.format_number(number, phonenumbers.PhoneNumberFormat.E164)


def phone_number(**constraints: Any) -> Any:
    """International phone number, returned in E.164 form ("+442070313000")."""
    bounds = {"min_length": 6, "max_length": 20, **constraints}
    return Annotated[
        str,
        StringConstraints(strip_whitespace=True, **bounds),
        AfterValidator(_check_phone),
        Messages(any=PHONE_MESSAGE),
    ]


# ============================================================================
# Identifiers
# ============================================================================

def id(**constraints: Any) -> Any:
    """Opaque identifier: a 30-33 character string or a non-negative number."""
    bounds = {"min_length": 30, "max_length": 33, **constraints}
    return alternatives(
        Annotated[str, StringConstraints(**bounds)],
        Annotated[int, Field(ge=0)],
        Annotated[float, Field(ge=0)],
    )


def _check_prefix(value: str, *, prefix: str, message: str) -> str:
    if not value.startswith(prefix) or not _ALPHANUMERIC.match(value[len(prefix):]):
        raise PydanticCustomError("model_id", message)
    return value


def _resolution_failed(event: str, error: AppError, **fields: Any) -> AppErrorException:
    log.warning(event, message=error.message, **fields)
    return AppErrorException(error)


def model_id(
    model: str | type,
    *,
    field: str = "id",
    allow_null: bool = False,
    store: str | ModelStore | None = None,
) -> Any:
    """Identifier of a stored model, shaped after its column definition.

    Foreign keys are followed to the referenced model. Numeric columns
    accept positive numbers or digit strings (parsed to numbers); other
    columns accept strings within the column length, starting with the
    column's ``info["prefix"]`` when one is set.

    Raises:
        AppErrorException: DATA.MODEL when the store, model or field is unknown
    """
    model_name = model if isinstance(model, str) else getattr(model, "__name__", str(model))
    model_store = store if isinstance(store, ModelStore) else get_store(store)
    if model_store is None:
        raise _resolution_failed(
            "model_store_missing",
            model_resolution(f"Validation for {model_name} not loaded", store=store or settings.MODEL_STORE,
                             model=model_name, origin="extensions").error,
            store=store, model=model_name,
        )

    if isinstance(model, str):
        found = model_store.model(model)
        if found.is_err():
            raise _resolution_failed("model_not_found", found.unwrap_err(), model=model_name)
        model = found.unwrap()

    described = model_store.attribute(model, field)
    if described.is_err():
        raise _resolution_failed("model_field_not_found", described.unwrap_err(), model=model_name, field=field)
    attribute = described.unwrap()

    if attribute.references is not None:
        target, key = attribute.references
        return model_id(target, field=key, allow_null=allow_null, store=model_store)

    message = f"Please provide a valid {model.__name__} {field}"

    if attribute.is_numeric:
        parse = int if attribute.is_integer else float
        number = Annotated[parse, Field(gt=0)]
        digits = Annotated[str, StringConstraints(pattern=_DIGITS), AfterValidator(lambda value: parse(value))]
        choices = (number, digits, None) if allow_null else (number, digits)
        return Annotated[
            alternatives(*choices, message=message),
            Messages(string_pattern_mismatch=message, alternatives_types=message),
        ]

    metadata: list[Any] = []
    if attribute.length:
        if attribute.prefix:
            metadata.append(StringConstraints(min_length=attribute.length, max_length=attribute.length))
        else:
            metadata.append(StringConstraints(min_length=max(attribute.length - 4, 0), max_length=attribute.length))
    if attribute.prefix:
        metadata.append(AfterValidator(partial(_check_prefix, prefix=attribute.prefix, message=message)))
    rule = Annotated[(str, *metadata)] if metadata else str
    return Optional[rule] if allow_null else rule
