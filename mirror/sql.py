"""SQL statement building for dataclass models, with typed parameter binds."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from .codec import type_name
from .scalars import Char, Char16, Char32
from .value import MirrorError

BindValue = Union[None, bool, int, float, str, bytes]

_I64_MIN = -(1 << 63)
_U64_MAX = (1 << 64) - 1
_CHAR_TYPES = (Char, Char16, Char32)


@dataclass
class Statement:
    """SQL text with ``?`` placeholders and the values bound to them, in order."""

    text: str = ""
    binds: list[BindValue] = field(default_factory=list)


@dataclass(frozen=True)
class _TableInfo:
    name: str | None
    primary_key: str


_TABLES: dict[type, _TableInfo] = {}
_BIND_ADAPTERS: dict[type, Callable[[Any], BindValue]] = {}


def table(name: str | None = None, primary_key: str = "id") -> Callable[[type], type]:
    """Class decorator naming the table and primary key column of a model."""

    def decorate(cls: type) -> type:
        _TABLES[cls] = _TableInfo(name, primary_key)
        return cls

    return decorate


def _model_class(model: Any) -> type:
    cls = model if isinstance(model, type) else type(model)
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls.__name__} is not a dataclass model")
    return cls


def table_name(model: Any) -> str:
    """The table of a model class or instance; by default the class name."""
    cls = _model_class(model)
    info = _TABLES.get(cls)
    return info.name if info is not None and info.name else type_name(cls)


def primary_key(model: Any) -> str:
    """The primary key column of a model class or instance; by default ``id``."""
    info = _TABLES.get(_model_class(model))
    return info.primary_key if info is not None else "id"


def register_bind_adapter(cls: type, function: Callable[[Any], BindValue]) -> None:
    """Bind values whose type is exactly ``cls`` through ``function``."""
    _BIND_ADAPTERS[cls] = function


def bind(value: Any) -> BindValue:
    """Convert ``value`` to a value that can be bound to a statement parameter."""
    adapter = _BIND_ADAPTERS.get(type(value))
    if adapter is not None:
        return adapter(value)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, enum.Enum):
        raise TypeError(f"{type(value).__name__} cannot be bound to SQL; register a bind adapter")
    if isinstance(value, _CHAR_TYPES):
        return value.code
    if isinstance(value, int):
        number = int(value)
        if not _I64_MIN <= number <= _U64_MAX:
            raise ValueError(f"{number} does not fit in a 64-bit SQL integer")
        return number
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{type(value).__name__} cannot be bound to SQL; register a bind adapter")


def _column_names(cls: type) -> list[str]:
    return [item.name for item in dataclasses.fields(cls)]


def insert(model: Any) -> Statement:
    """INSERT of every field of ``model``."""
    cls = _model_class(model)
    columns = _column_names(cls)
    binds = [bind(getattr(model, column)) for column in columns]
    placeholders = ", ".join("?" for _ in binds)
    text = f"INSERT INTO {table_name(cls)} ({', '.join(columns)}) VALUES ({placeholders})"
    return Statement(text, binds)


def update(model: Any) -> Statement:
    """UPDATE of every non-key field of ``model``, matched by its primary key."""
    cls = _model_class(model)
    key = primary_key(cls)
    columns = _column_names(cls)
    if key not in columns:
        raise MirrorError("primary key field was not found")

    assignments = [column for column in columns if column != key]
    binds = [bind(getattr(model, column)) for column in assignments]
    binds.append(bind(getattr(model, key)))
    settings = ", ".join(f"{column} = ?" for column in assignments)
    text = f"UPDATE {table_name(cls)} SET {settings} WHERE {key} = ?"
    return Statement(text, binds)


def select_by_id(model_type: type, id: Any) -> Statement:
    """SELECT of every field of ``model_type`` for the row with primary key ``id``."""
    cls = _model_class(model_type)
    columns = ", ".join(_column_names(cls))
    text = f"SELECT {columns} FROM {table_name(cls)} WHERE {primary_key(cls)} = ?"
    return Statement(text, [bind(id)])


def delete_by_id(model_type: type, id: Any) -> Statement:
    """DELETE of the row of ``model_type`` with primary key ``id``."""
    cls = _model_class(model_type)
    text = f"DELETE FROM {table_name(cls)} WHERE {primary_key(cls)} = ?"
    return Statement(text, [bind(id)])