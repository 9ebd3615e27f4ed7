"""Model Store

Read-only view over SQLAlchemy declarative models, used by
``ext.model_id()`` to derive identifier rules from column definitions.

Usage:
    class Base(DeclarativeBase): ...

    register_store("sql", ModelStore(Base))

    class Account(Base):
        __tablename__ = "accounts"
        id: Mapped[str] = mapped_column(String(16), primary_key=True, info={"prefix": "acc_"})

Column ``info`` keys read here:
- prefix: literal every identifier of the column starts with
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Column, Integer, Numeric, inspect
from sqlalchemy.orm import DeclarativeBase, Mapper
from sqlalchemy.types import TypeDecorator, TypeEngine

from intake.config import settings
from intake.errors import AppError, Ok, Result, model_resolution
from intake.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ModelAttribute:
    """What model_id() needs to know about one mapped column."""
    name: str
    type: TypeEngine
    length: int | None = None
    prefix: str | None = None
    references: tuple[type, str] | None = None

    @property
    def type_name(self) -> str:
        return type(self.type).__name__.upper()

    @property
    def is_integer(self) -> bool:
        return isinstance(self.type, Integer)

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.type, (Integer, Numeric))


def _unwrap(column_type: TypeEngine) -> TypeEngine:
    while isinstance(column_type, TypeDecorator):
        column_type = column_type.impl_instance
    return column_type


class ModelStore:
    """Looks up mapped classes and columns of one declarative base."""

    def __init__(self, base: type[DeclarativeBase] | Any):
        self.base = base

    @property
    def mappers(self) -> list[Mapper]:
        return list(self.base.registry.mappers)

    def model(self, name: str) -> Result[type, AppError]:
        """Find a mapped class by class name or table name (case-insensitive)."""
        wanted = name.strip().lower()
        for mapper in self.mappers:
            table = getattr(mapper.local_table, "name", "")
            if mapper.class_.__name__.lower() == wanted or table.lower() == wanted:
                return Ok(mapper.class_)
        return model_resolution(f"Model {name} is not a valid store model", model=name, origin="store")

    def _model_for(self, column: Column) -> type | None:
        for mapper in self.mappers:
            if mapper.local_table is column.table:
                return mapper.class_
        return None

    def attribute(self, model: type, field: str) -> Result[ModelAttribute, AppError]:
        """Describe the column mapped to ``field`` on ``model``."""
        mapper = inspect(model, raiseerr=False)
        if mapper is None:
            return model_resolution(
                f"{model!r} is not a mapped model", model=getattr(model, "__name__", str(model)), origin="store"
            )

        column = mapper.columns.get(field)
        if column is None:
            return model_resolution(
                f"Model {model.__name__} does not have field [{field}]",
                model=model.__name__,
                field=field,
                origin="store",
            )

        references = None
        for fk in column.foreign_keys:
            target_model = self._model_for(fk.column)
            if target_model is not None:
                key = inspect(target_model).get_property_by_column(fk.column).key
                references = (target_model, key)
                break

        column_type = _unwrap(column.type)
        return Ok(ModelAttribute(
            name=field,
            type=column_type,
            length=getattr(column_type, "length", None),
            prefix=column.info.get("prefix"),
            references=references,
        ))


_stores: dict[str, ModelStore] = {}


def register_store(name: str, store: ModelStore) -> ModelStore:
    _stores[name] = store
    log.debug("model_store_registered", store=name)
    return store


def get_store(name: str | None = None) -> ModelStore | None:
    """Return the store registered under ``name`` (default: Settings.MODEL_STORE)."""
    return _stores.get(name or settings.MODEL_STORE)


def unregister_store(name: str) -> None:
    _stores.pop(name, None)
