"""Reading and writing value trees as JSON documents."""

from __future__ import annotations

import json
import math
from typing import Any

from .value import Kind, MirrorError, Value

_INT_MIN = -(1 << 63)
_UINT_MAX = (1 << 64) - 1
_NUMBER_KINDS = (
    Kind.CHARACTER,
    Kind.SIGNED_INTEGER,
    Kind.UNSIGNED_INTEGER,
    Kind.FLOATING_POINT,
)


def _reject_constant(name: str) -> Any:
    raise MirrorError(f"invalid JSON number: {name}")


def _parse_float(text: str) -> float:
    number = float(text)
    if not math.isfinite(number):
        raise MirrorError("JSON number is out of range")
    return number


def _parse_int(text: str) -> int | float:
    number = int(text)
    if _INT_MIN <= number <= _UINT_MAX:
        return number
    # Integers wider than 64 bits are kept as floating-point numbers.
    return _parse_float(text)


def _loads(text: str | bytes) -> Any:
    return json.loads(
        text,
        parse_int=_parse_int,
        parse_float=_parse_float,
        parse_constant=_reject_constant,
    )


def _to_format(node: Value) -> Any:
    if node.kind is Kind.OBJECT:
        return {name: _to_format(child) for name, child in node.fields}
    if node.kind is Kind.ARRAY:
        return [_to_format(element) for element in node.elements]
    if node.kind is Kind.STRING:
        return node.text
    if node.kind in _NUMBER_KINDS:
        try:
            return _loads(node.text)
        except json.JSONDecodeError as error:
            raise MirrorError(f"invalid JSON number: {node.text!r}") from error
    if node.kind is Kind.BOOLEAN:
        return node.boolean
    return None


def _from_format(data: Any) -> Value:
    if isinstance(data, dict):
        return Value(
            kind=Kind.OBJECT,
            fields=[(name, _from_format(child)) for name, child in sorted(data.items())],
        )
    if isinstance(data, list):
        output = Value.array()
        output.elements.extend(_from_format(element) for element in data)
        return output
    if isinstance(data, str):
        return Value.string(data)
    if isinstance(data, bool):
        return Value.boolean_value(data)
    if isinstance(data, int):
        if data >= 0:
            return Value.unsigned_integer(str(data), 64)
        return Value.signed_integer(str(data), 64)
    if isinstance(data, float):
        return Value.floating_point(repr(data), 64)
    return Value.null()


def write(value: Value) -> str:
    """Render a value tree as compact JSON with object keys in sorted order."""
    return json.dumps(
        _to_format(value),
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
        allow_nan=False,
    )


def read(text: str | bytes) -> Value:
    """Parse a JSON document into a value tree."""
    try:
        data = _loads(text)
    except json.JSONDecodeError as error:
        raise MirrorError(f"invalid JSON document: {error}") from error
    return _from_format(data)