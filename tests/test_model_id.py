"""Tests for the model store and ext.model_id."""

import pytest
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from intake.errors import AppErrorException, ErrorCode
from intake.validation import BaseSchema, FieldError, ValidationError, ext

from .schemas import Account, Invoice


class TestModelStore:
    """Tests for ModelStore lookups."""

    def test_model_by_class_or_table_name(self, store):
        assert store.model("account").unwrap() is Account
        assert store.model("INVOICES").unwrap() is Invoice

    def test_unknown_model(self, store):
        result = store.model("nope")
        assert result.is_err()
        assert result.unwrap_err().code is ErrorCode.MODEL_RESOLUTION

    def test_attribute(self, store):
        attribute = store.attribute(Account, "id").unwrap()

        assert attribute.prefix == "acc_"
        assert attribute.length == 16
        assert attribute.type_name == "STRING"
        assert not attribute.is_numeric

    def test_foreign_key_reference(self, store):
        attribute = store.attribute(Invoice, "account_id").unwrap()
        assert attribute.references == (Account, "id")

    def test_numeric_attributes(self, store):
        assert store.attribute(Invoice, "id").unwrap().is_integer
        amount = store.attribute(Invoice, "amount").unwrap()
        assert amount.is_numeric and not amount.is_integer

    def test_unknown_field(self, store):
        assert store.attribute(Invoice, "nope").is_err()


class TestNumericIds:
    """Tests for model_id on numeric columns."""

    @pytest.mark.parametrize("value, expected", [(42, 42), ("42", 42)])
    def test_integer_column(self, store, value, expected):
        adapter = TypeAdapter(ext.model_id("invoice", store=store))
        assert adapter.validate_python(value) == expected

    def test_decimal_column_parses_float(self, store):
        adapter = TypeAdapter(ext.model_id("invoice", field="amount", store=store))
        assert adapter.validate_python("12") == 12.0

    def test_null_allowed(self, store):
        adapter = TypeAdapter(ext.model_id("invoice", allow_null=True, store=store))
        assert adapter.validate_python(None) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [0, "4a", None])
    async def test_rejected(self, validator, store, value):
        class Payment(BaseSchema):
            invoice_id: ext.model_id("invoice", store=store)

        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Payment, {"invoice_id": value})

        assert exc_info.value.fields["invoice_id"] == [
            FieldError("alternatives_types", "Please provide a valid Invoice id")
        ]


class TestStringIds:
    """Tests for model_id on string columns."""

    def test_prefixed(self, store):
        adapter = TypeAdapter(ext.model_id("account", store=store))
        assert adapter.validate_python("acc_0123456789ab") == "acc_0123456789ab"

    @pytest.mark.asyncio
    async def test_foreign_key_followed(self, validator, store):
        class Payment(BaseSchema):
            account_id: ext.model_id("invoice", field="account_id", store=store)

        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Payment, {"account_id": "usr_0123456789ab"})

        assert exc_info.value.fields["account_id"] == [
            FieldError("model_id", "Please provide a valid Account id")
        ]

    @pytest.mark.asyncio
    async def test_exact_length_with_prefix(self, validator, store):
        class Payment(BaseSchema):
            account_id: ext.model_id(Account, store=store)

        with pytest.raises(ValidationError) as exc_info:
            await validator.validate(Payment, {"account_id": "acc_01234"})

        assert exc_info.value.fields["account_id"][0].code == "string_too_short"

    def test_length_window_without_prefix(self, store):
        adapter = TypeAdapter(ext.model_id("account", field="slug", store=store))

        assert adapter.validate_python("a" * 16) == "a" * 16
        assert adapter.validate_python("a" * 20) == "a" * 20
        with pytest.raises(PydanticValidationError):
            adapter.validate_python("a" * 15)

    def test_null_allowed(self, store):
        adapter = TypeAdapter(ext.model_id("account", allow_null=True, store=store))
        assert adapter.validate_python(None) is None

    def test_default_store(self, default_store):
        adapter = TypeAdapter(ext.model_id("account"))
        assert adapter.validate_python("acc_abcdefabcdef") == "acc_abcdefabcdef"


class TestSetupFailures:
    """Tests for model_id build-time failures."""

    def test_missing_store(self):
        with pytest.raises(AppErrorException) as exc_info:
            ext.model_id("account", store="missing")

        assert exc_info.value.code is ErrorCode.MODEL_RESOLUTION
        assert exc_info.value.error.metadata["store"] == "missing"

    def test_missing_model(self, store):
        with pytest.raises(AppErrorException) as exc_info:
            ext.model_id("ghost", store=store)
        assert exc_info.value.code is ErrorCode.MODEL_RESOLUTION

    def test_missing_field(self, store):
        with pytest.raises(AppErrorException) as exc_info:
            ext.model_id("account", field="email", store=store)

        assert exc_info.value.code is ErrorCode.MODEL_RESOLUTION
        assert exc_info.value.error.metadata["field"] == "email"
