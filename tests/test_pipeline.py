"""Tests for the validation pipeline."""

from typing import Annotated

import pytest
from pydantic import AfterValidator, ConfigDict

from intake.config import Settings
from intake.errors import AppErrorException, ErrorCode, Err, Ok
from intake.validation import BaseSchema, ValidationError, ValidationOptions, Validator
from intake.validation.options import STRICT_CONTEXT_KEY

from .schemas import Profile


def explode(value):
    raise RuntimeError("engine failure")


class Exploding(BaseSchema):
    value: Annotated[str, AfterValidator(explode)]


class Strict(BaseSchema):
    model_config = ConfigDict(extra="forbid")

    name: str


class TestClean:
    """Tests for the default (clean) result mode."""

    @pytest.mark.asyncio
    async def test_defaults_applied_and_unknown_stripped(self, validator):
        result = await validator.validate(Profile, {"name": "Ada", "extra": 1})
        assert result == {"name": "Ada", "role": "member", "tags": []}

    @pytest.mark.asyncio
    async def test_keep_unknown(self, validator):
        result = await validator.validate(Profile, {"name": "Ada", "extra": 1}, strip_unknown=False)
        assert result["extra"] == 1

    @pytest.mark.asyncio
    async def test_explicit_null_kept(self, validator):
        result = await validator.validate(Profile, {"name": "Ada", "age": None})
        assert "age" in result
        assert result["age"] is None

    @pytest.mark.asyncio
    async def test_no_defaults(self, validator):
        result = await validator.validate(Profile, {"name": "Ada"}, no_defaults=True)
        assert result == {"name": "Ada"}

    @pytest.mark.asyncio
    async def test_conversion(self, validator):
        result = await validator.validate(Profile, {"name": "Ada", "age": "42"})
        assert result["age"] == 42

    @pytest.mark.asyncio
    async def test_strict_when_convert_disabled(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Profile, {"name": "Ada", "age": "42"}, convert=False)

        assert exc_info.value.fields["age"][0].code == "int_type"

    @pytest.mark.asyncio
    async def test_arrays_coerced(self, validator):
        result = await validator.validate(Profile, {"name": "Ada", "tags": "a,b"})
        assert result["tags"] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_nested_model(self, validator):
        payload = {"name": "Ada", "address": {"city": "London", "lines": "1 Main St"}}
        result = await validator.validate(Profile, payload)

        assert result["address"] == {"city": "London", "lines": ["1 Main St"]}
        assert payload["address"]["lines"] == "1 Main St"

    @pytest.mark.asyncio
    async def test_root_array_schema(self, validator):
        schema = validator.register(list[int], "ids")
        assert await validator.validate(schema, 5) == [5]


class TestMerge:
    """Tests for merge mode (clean=False)."""

    @pytest.mark.asyncio
    async def test_result_written_onto_input(self, validator):
        payload = {"name": "Ada", "age": "42", "extra": 1}
        result = await validator.validate(Profile, payload, clean=False)

        assert result is payload
        assert payload == {"name": "Ada", "age": 42, "extra": 1, "role": "member", "tags": []}

    @pytest.mark.asyncio
    async def test_instance_default(self, registry):
        validator = Validator(ValidationOptions(clean=False), registry=registry)
        payload = {"name": "Ada"}

        assert await validator.validate(Profile, payload) is payload

    @pytest.mark.asyncio
    async def test_call_overrides_instance(self, registry):
        validator = Validator(ValidationOptions(clean=False), registry=registry)
        payload = {"name": "Ada"}

        assert await validator.validate(Profile, payload, clean=True) is not payload


class TestFailures:
    """Tests for failed validation."""

    @pytest.mark.asyncio
    async def test_missing_data(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Profile)

        error = exc_info.value
        assert error.message == "Request contains errors"
        assert [entry.code for entry in error.fields["name"]] == ["missing"]
        assert error.code is ErrorCode.DATA_INVALID

    @pytest.mark.asyncio
    async def test_unknown_keys_rejected(self, validator):
        payload = {"name": "Ada", "extra": 1, "address": {"city": "London", "zip": "N1"}}
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Profile, payload, allow_unknown=False)

        fields = exc_info.value.fields
        assert set(fields) == {"extra", "address.zip"}
        assert fields["extra"][0].code == "extra_forbidden"

    @pytest.mark.asyncio
    async def test_forbidding_model_reports_once(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Strict, {"name": "Ada", "extra": 1}, allow_unknown=False)

        assert len(exc_info.value.fields["extra"]) == 1

    @pytest.mark.asyncio
    async def test_abort_early(self, validator):
        payload = {"name": "A", "age": "old"}
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Profile, payload)
        assert set(exc_info.value.fields) == {"name", "age"}

        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Profile, payload, abort_early=True)
        assert len(exc_info.value.fields) == 1

    @pytest.mark.asyncio
    async def test_unknown_schema(self, validator):
        with pytest.raises(AppErrorException) as exc_info:
            await validator.validate("does.not.exist", {})

        assert not isinstance(exc_info.value, ValidationError)
        assert exc_info.value.code is ErrorCode.VALIDATION_SETUP
        assert exc_info.value.error.message == "Invalid or missing schema definition"

    @pytest.mark.asyncio
    async def test_engine_exception_becomes_generic_error(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Exploding, {"value": "x"})

        error = exc_info.value
        assert error.code is ErrorCode.DATA_INVALID
        assert error.message == "Please provide valid data"
        assert error.fields is None
        assert isinstance(error.__cause__, RuntimeError)


class TestValidateResult:
    """Tests for the Result-returning variant."""

    @pytest.mark.asyncio
    async def test_ok(self, validator):
        result = await validator.validate_result(Profile, {"name": "Ada"})
        assert isinstance(result, Ok)
        assert result.unwrap()["name"] == "Ada"

    @pytest.mark.asyncio
    async def test_err(self, validator):
        result = await validator.validate_result(Profile, {"name": "A"})

        assert isinstance(result, Err)
        error = result.unwrap_err()
        assert error.code is ErrorCode.DATA_INVALID
        assert error.metadata["fields"]["name"][0]["code"] == "string_too_short"


class TestSettings:
    """Tests for process-wide defaults."""

    @pytest.mark.asyncio
    async def test_settings_defaults(self, registry, monkeypatch):
        monkeypatch.setenv("INTAKE_VALIDATION_ALLOW_UNKNOWN", "false")
        validator = Validator(registry=registry, settings=Settings(_env_file=None))

        with pytest.raises(ValidationError):
            await validator.validate(Profile, {"name": "Ada", "extra": 1})

    def test_options_merge(self):
        base = ValidationOptions(clean=True, convert=True)
        merged = base.merge(ValidationOptions(convert=False))

        assert merged.clean is True
        assert merged.convert is False
        assert merged.engine_kwargs() == {"strict": True, "context": {STRICT_CONTEXT_KEY: True}}
