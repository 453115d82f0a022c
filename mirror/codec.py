"""Conversion between Python objects and value trees, driven by type hints."""

from __future__ import annotations

import abc
import dataclasses
import inspect
import types
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin

from .scalars import UInt64, deserialize_scalar, is_scalar_type, serialize_scalar
from .value import TYPE_FIELD, Kind, MirrorError, Value, require_field, require_kind

_NoneType = type(None)
_UNION_ORIGINS = (Union, types.UnionType)
_SEQUENCE_TYPES = (list, set, frozenset, deque)


class Adapter(abc.ABC):
    """Custom conversion for one type; takes precedence over built-in handling."""

    @abc.abstractmethod
    def serialize(self, obj: Any) -> Value:
        """Convert ``obj`` into a value node."""

    @abc.abstractmethod
    def deserialize(self, node: Value) -> Any:
        """Build an object back from ``node``."""


_ADAPTERS: dict[type, Adapter] = {}


def register_adapter(cls: type, adapter: Adapter) -> None:
    """Use ``adapter`` for every value whose type is exactly ``cls``."""
    _ADAPTERS[cls] = adapter


@dataclass(frozen=True)
class _FixedSizeType:
    element: Any
    size: int

    def __call__(self, items: Any = ()) -> list:
        result = list(items)
        if len(result) != self.size:
            raise ValueError(f"expected {self.size} elements, got {len(result)}")
        return result


class FixedSize:
    """Hint for a list of exactly ``size`` elements: ``FixedSize[Int32, 3]``."""

    def __class_getitem__(cls, params: tuple) -> _FixedSizeType:
        element, size = params
        return _FixedSizeType(element, int(size))


@dataclass(frozen=True)
class _VariantType:
    alternatives: tuple

    def __call__(self, index: int, value: Any) -> Variant:
        if not 0 <= index < len(self.alternatives):
            raise ValueError("variant index is out of range")
        return Variant(index, value)


@dataclass(frozen=True)
class Variant:
    """A value together with the index of the alternative it holds.

    ``Variant[Int32, str]`` is a hint for such values; the index keeps
    alternatives apart even when several share a type.
    """

    index: int
    value: Any

    def __class_getitem__(cls, params: Any) -> _VariantType:
        alternatives = params if isinstance(params, tuple) else (params,)
        return _VariantType(tuple(alternatives))


def type_name(cls: type) -> str:
    """The name an object of ``cls`` is tagged with."""
    return cls.__name__


def _field_hints(cls: type) -> dict[str, Any]:
    hints = {}
    for item in dataclasses.fields(cls):
        if isinstance(item.type, str):
            raise TypeError(
                f"field {cls.__name__}.{item.name} has a string annotation; "
                "declare fields with real types"
            )
        hints[item.name] = item.type
    return hints


def _union_of(alternatives: list) -> Any:
    return alternatives[0] if len(alternatives) == 1 else Union[tuple(alternatives)]


def _runtime_class(hint: Any) -> type | None:
    if hint is None:
        return _NoneType
    if isinstance(hint, _VariantType):
        return Variant
    if isinstance(hint, _FixedSizeType):
        return list
    candidate = get_origin(hint) or hint
    return candidate if isinstance(candidate, type) else None


def _array(nodes: Any) -> Value:
    output = Value.array()
    output.elements.extend(nodes)
    return output


def _variant_node(index: int, value: Value) -> Value:
    output = Value.object("variant")
    output.fields.append(("index", Value.unsigned_integer(str(index), 32)))
    output.fields.append(("value", value))
    return output


def _pick_alternative(obj: Any, alternatives: tuple) -> int:
    for index, alternative in enumerate(alternatives):
        runtime = _runtime_class(alternative)
        if runtime is None or not isinstance(obj, runtime):
            continue
        if isinstance(obj, bool) != issubclass(runtime, bool):
            continue
        return index
    for index, alternative in enumerate(alternatives):
        try:
            serialize(obj, alternative)
        except (TypeError, ValueError, MirrorError):
            continue
        return index
    raise TypeError(f"{type(obj).__name__} matches no variant alternative")


def _serialize_variant(obj: Any, alternatives: tuple) -> Value:
    if isinstance(obj, Variant):
        if not 0 <= obj.index < len(alternatives):
            raise MirrorError("variant index is out of range")
        index, held = obj.index, obj.value
    else:
        index, held = _pick_alternative(obj, alternatives), obj
    return _variant_node(index, serialize(held, alternatives[index]))


def _serialize_object(obj: Any, cls: type) -> Value:
    if not isinstance(obj, cls):
        raise TypeError(f"cannot store {type(obj).__name__} as {cls.__name__}")
    hints = _field_hints(cls)
    output = Value.object(type_name(cls))
    for item in dataclasses.fields(cls):
        output.fields.append((item.name, serialize(getattr(obj, item.name), hints[item.name])))
    return output


def serialize(obj: Any, hint: Any = None) -> Value:
    """Convert ``obj`` to a value tree; without ``hint`` the type of ``obj`` is used."""
    if hint is None or hint is Any:
        hint = type(obj)
    if isinstance(hint, type) and hint in _ADAPTERS:
        return _ADAPTERS[hint].serialize(obj)
    if isinstance(hint, _FixedSizeType):
        items = list(obj)
        if len(items) != hint.size:
            raise MirrorError("array element count mismatch")
        return _array(serialize(item, hint.element) for item in items)
    if isinstance(hint, _VariantType):
        return _serialize_variant(obj, hint.alternatives)

    origin, args = get_origin(hint), get_args(hint)
    if origin in _UNION_ORIGINS:
        present = [arg for arg in args if arg is not _NoneType]
        if len(present) < len(args):
            return Value.null() if obj is None else serialize(obj, _union_of(present))
        return _serialize_variant(obj, args)
    if is_scalar_type(hint):
        return serialize_scalar(obj, hint)
    if hint is Variant:
        if not isinstance(obj, Variant):
            raise TypeError(f"cannot store {type(obj).__name__} as Variant")
        return _variant_node(obj.index, serialize(obj.value))

    container = origin or hint
    if isinstance(container, type) and issubclass(container, Mapping):
        key_hint, value_hint = args or (None, None)
        output = Value.array()
        for key, mapped in obj.items():
            entry = Value.object("map_entry")
            entry.fields.append(("key", serialize(key, key_hint)))
            entry.fields.append(("value", serialize(mapped, value_hint)))
            output.elements.append(entry)
        return output
    if container is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return _array(serialize(item, args[0]) for item in obj)
        if args:
            if len(obj) != len(args):
                raise MirrorError("tuple element count mismatch")
            return _array(serialize(item, arg) for item, arg in zip(obj, args))
        return _array(serialize(item) for item in obj)
    if isinstance(container, type) and issubclass(container, _SEQUENCE_TYPES):
        element = args[0] if args else None
        return _array(serialize(item, element) for item in obj)
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return _serialize_object(obj, hint)
    raise TypeError(f"{hint!r} is not serializable")


def _deserialize_variant(node: Value, alternatives: tuple) -> tuple[int, Any]:
    require_kind(node, Kind.OBJECT)
    index = deserialize(require_field(node, "index"), UInt64)
    held = require_field(node, "value")
    if index >= len(alternatives):
        raise MirrorError("variant index is out of range")
    return index, deserialize(held, alternatives[index])


def _deserialize_object(node: Value, cls: type) -> Any:
    require_kind(node, Kind.OBJECT)
    tag = node.find(TYPE_FIELD)
    if tag is not None and tag.text != type_name(cls):
        raise MirrorError("unexpected object type")
    hints = _field_hints(cls)
    initial: dict[str, Any] = {}
    later: dict[str, Any] = {}
    for item in dataclasses.fields(cls):
        decoded = deserialize(require_field(node, item.name), hints[item.name])
        (initial if item.init else later)[item.name] = decoded
    obj = cls(**initial)
    for name, decoded in later.items():
        object.__setattr__(obj, name, decoded)
    return obj


def _build(container: type, items: Any) -> Any:
    return items if inspect.isabstract(container) else container(items)


def deserialize(node: Value, hint: Any) -> Any:
    """Build an object of type ``hint`` from a value tree."""
    if hint is Any:
        raise TypeError("cannot deserialize without a type")
    if isinstance(hint, type) and hint in _ADAPTERS:
        return _ADAPTERS[hint].deserialize(node)
    if isinstance(hint, _FixedSizeType):
        require_kind(node, Kind.ARRAY)
        if len(node.elements) != hint.size:
            raise MirrorError("array element count mismatch")
        return [deserialize(element, hint.element) for element in node.elements]
    if isinstance(hint, _VariantType):
        return Variant(*_deserialize_variant(node, hint.alternatives))

    origin, args = get_origin(hint), get_args(hint)
    if origin in _UNION_ORIGINS:
        present = [arg for arg in args if arg is not _NoneType]
        if len(present) < len(args):
            return None if node.kind is Kind.NULL else deserialize(node, _union_of(present))
        return _deserialize_variant(node, args)[1]
    if is_scalar_type(hint):
        return deserialize_scalar(node, hint)
    if hint is Variant:
        raise TypeError("a Variant hint needs its alternatives")

    container = origin or hint
    if isinstance(container, type) and issubclass(container, Mapping):
        if not args:
            raise TypeError("cannot deserialize a mapping without key and value types")
        key_hint, value_hint = args
        require_kind(node, Kind.ARRAY)
        pairs = {}
        for element in node.elements:
            require_kind(element, Kind.OBJECT)
            key = deserialize(require_field(element, "key"), key_hint)
            pairs[key] = deserialize(require_field(element, "value"), value_hint)
        return _build(container, pairs)
    if container is tuple:
        require_kind(node, Kind.ARRAY)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(deserialize(element, args[0]) for element in node.elements)
        if not args:
            raise TypeError("cannot deserialize a tuple without element types")
        if len(node.elements) != len(args):
            raise MirrorError("tuple element count mismatch")
        return tuple(deserialize(element, arg) for element, arg in zip(node.elements, args))
    if isinstance(container, type) and issubclass(container, _SEQUENCE_TYPES):
        if not args:
            raise TypeError("cannot deserialize a sequence without an element type")
        require_kind(node, Kind.ARRAY)
        return container(deserialize(element, args[0]) for element in node.elements)
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return _deserialize_object(node, hint)
    raise TypeError(f"{hint!r} is not deserializable")