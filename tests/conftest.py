"""Pytest configuration and fixtures for intake tests."""

import pytest

from intake.logging import configure_logging
from intake.store import ModelStore, register_store, unregister_store
from intake.validation import SchemaRegistry, Validator

from .schemas import Base

configure_logging(level="DEBUG")


@pytest.fixture
def registry():
    """Empty schema registry."""
    return SchemaRegistry()


@pytest.fixture
def validator(registry):
    """Validator with process defaults and its own registry."""
    return Validator(registry=registry)


@pytest.fixture
def store():
    """Model store over the test declarative base."""
    return ModelStore(Base)


@pytest.fixture
def default_store(store):
    """The test store registered under the default store name."""
    register_store("sql", store)
    yield store
    unregister_store("sql")
