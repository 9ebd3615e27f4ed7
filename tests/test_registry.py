"""Tests for the schema registry."""

import inspect

import pytest

import intake
from intake.errors import AppErrorException, ErrorCode
from intake.validation import BaseSchema, CompiledSchema, SchemaNode, ValidatedBody, array_paths

from .schemas import Address, Profile


class Order(BaseSchema):
    reference: str
    tags: list[str] = []
    address: Address
    items: list[Address] = []
    notes: str | None = None


class Tree(BaseSchema):
    name: str
    parent: "Tree | None" = None


def build(registry):
    return registry.register(lambda: Profile)


def build_with_package_helper():
    return intake.register(lambda: Profile), inspect.currentframe().f_lineno


def build_with_validator(validator):
    return validator.register(lambda: Profile), inspect.currentframe().f_lineno


def build_with_boundary(validator):
    return ValidatedBody(lambda: Profile, validator=validator).schema, inspect.currentframe().f_lineno


class TestRegister:
    """Tests for SchemaRegistry.register."""

    def test_explicit_id_is_idempotent(self, registry):
        """Test the factory runs once per id."""
        calls = []

        def factory():
            calls.append(1)
            return Profile

        first = registry.register(factory, "profile")
        second = registry.register(factory, "profile")

        assert first is second
        assert isinstance(first, CompiledSchema)
        assert first.definition is Profile
        assert len(calls) == 1
        assert "profile" in registry
        assert len(registry) == 1

    def test_call_site_id(self, registry):
        """Test registrations from the same line share one schema."""
        first = build(registry)
        second = build(registry)

        assert first is second
        path, _, line = first.id.rpartition(":")
        assert path.endswith("test_registry.py")
        assert line.isdigit()

    @pytest.mark.parametrize("build_from", [
        lambda validator: build_with_package_helper(),
        build_with_validator,
        build_with_boundary,
    ])
    def test_call_site_skips_package_frames(self, validator, build_from):
        """Test wrappers inside the package do not become the call site."""
        first, line = build_from(validator)
        second, _ = build_from(validator)

        assert first is second
        assert first.id.endswith(f"test_registry.py:{line}")

    def test_different_lines_different_schemas(self, registry):
        """Test registrations from different lines are kept apart."""
        first = registry.register(lambda: Profile)
        second = registry.register(lambda: Profile)

        assert first is not second
        assert first.id != second.id
        assert len(registry) == 2

    def test_definition_used_directly(self, registry):
        """Test a model class is registered without being called."""
        compiled = registry.register(Profile, "direct")
        assert compiled.definition is Profile

    def test_empty_factory_returns_none(self, registry):
        """Test a falsy factory result is not stored."""
        assert registry.register(lambda: None, "empty") is None
        assert "empty" not in registry

    def test_unbuildable_definition(self, registry):
        """Test a definition the engine cannot build is a setup error."""
        class NotASchema:
            pass

        with pytest.raises(AppErrorException) as exc_info:
            registry.register(NotASchema, "broken")

        assert exc_info.value.code is ErrorCode.VALIDATION_SETUP
        assert "broken" not in registry


class TestArrayFields:
    """Tests for array field discovery."""

    def test_nested_paths(self, registry):
        compiled = registry.register(Order, "order")
        assert compiled.array_fields == ("tags", "address.lines", "items")

    def test_root_array(self, registry):
        compiled = registry.register(list[int], "ids")
        assert compiled.array_fields == ("",)

    def test_no_arrays(self, registry):
        class Plain(BaseSchema):
            name: str

        assert registry.register(Plain, "plain").array_fields == ()

    def test_self_reference_terminates(self):
        assert array_paths(SchemaNode.of(Tree)) == []

    def test_optional_nested_model(self):
        assert array_paths(SchemaNode.of(Profile)) == ["tags", "address.lines"]


class TestResolve:
    """Tests for SchemaRegistry.resolve."""

    def test_model_class_registered_once(self, registry):
        first = registry.resolve(Profile)
        assert first.id == f"model:{Profile.__module__}.{Profile.__qualname__}"
        assert registry.resolve(Profile) is first

    def test_by_id_and_instance(self, registry):
        compiled = registry.register(Profile, "profile")
        assert registry.resolve("profile") is compiled
        assert registry.resolve(compiled) is compiled

    def test_unknown(self, registry):
        assert registry.resolve("missing") is None
        assert registry.resolve(42) is None
