"""Reading and writing value trees as YAML documents."""

from __future__ import annotations

import enum
import re

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from .value import Kind, MirrorError, Value

_STR_TAG = "tag:yaml.org,2002:str"
_BOOL_TAG = "tag:yaml.org,2002:bool"
_NULL_TAG = "tag:yaml.org,2002:null"
_MAP_TAG = "tag:yaml.org,2002:map"
_SEQ_TAG = "tag:yaml.org,2002:seq"

_NULL_SCALARS = frozenset({"", "~", "null", "Null", "NULL"})
_NUMBER_KINDS = (
    Kind.CHARACTER,
    Kind.SIGNED_INTEGER,
    Kind.UNSIGNED_INTEGER,
    Kind.FLOATING_POINT,
)
_NUMBER = re.compile(r"[+-]?(?:[0-9]+(\.[0-9]*)?|(\.)[0-9]+)([eE][+-]?[0-9]+)?")


class NumberKind(enum.Enum):
    """How a plain scalar reads as a number."""

    NONE = "none"
    INTEGER = "integer"
    FLOATING_POINT = "floating_point"


def classify_number(text: str) -> NumberKind:
    """Tell whether ``text`` is a decimal integer, a decimal float, or neither."""
    match = _NUMBER.fullmatch(text)
    if match is None:
        return NumberKind.NONE
    fraction, leading_dot, exponent = match.groups()
    if fraction is not None or leading_dot is not None or exponent is not None:
        return NumberKind.FLOATING_POINT
    return NumberKind.INTEGER


def _compose(text: str) -> Node | None:
    try:
        return next(iter(yaml.compose_all(text, Loader=yaml.SafeLoader)), None)
    except yaml.YAMLError as error:
        raise MirrorError(f"invalid YAML document: {error}") from error


def _to_format(node: Value) -> Node:
    if node.kind is Kind.OBJECT:
        children = {name: _to_format(child) for name, child in node.fields}
        pairs = [(ScalarNode(_STR_TAG, name), child) for name, child in children.items()]
        return MappingNode(_MAP_TAG, pairs, flow_style=False)
    if node.kind is Kind.ARRAY:
        return SequenceNode(_SEQ_TAG, [_to_format(element) for element in node.elements], flow_style=False)
    if node.kind is Kind.STRING:
        return ScalarNode(_STR_TAG, node.text)
    if node.kind in _NUMBER_KINDS:
        loaded = _compose(node.text)
        return loaded if loaded is not None else ScalarNode(_NULL_TAG, "~")
    if node.kind is Kind.BOOLEAN:
        return ScalarNode(_BOOL_TAG, "true" if node.boolean else "false")
    return ScalarNode(_NULL_TAG, "~")


def _is_null(node: Node) -> bool:
    return isinstance(node, ScalarNode) and node.style is None and node.value in _NULL_SCALARS


def _key_text(node: Node) -> str:
    if _is_null(node):
        return "null"
    if isinstance(node, ScalarNode):
        return node.value
    raise MirrorError("YAML mapping key is not a scalar")


def _normalize_number(text: str) -> str:
    return text[1:] if text.startswith("+") else text


def _from_format(node: Node | None) -> Value:
    if node is None or _is_null(node):
        return Value.null()
    if isinstance(node, MappingNode):
        return Value(
            kind=Kind.OBJECT,
            fields=[(_key_text(key), _from_format(child)) for key, child in node.value],
        )
    if isinstance(node, SequenceNode):
        output = Value.array()
        output.elements.extend(_from_format(element) for element in node.value)
        return output
    if isinstance(node, ScalarNode):
        scalar = node.value
        if scalar in ("true", "false"):
            return Value.boolean_value(scalar == "true")
        number = classify_number(scalar)
        if number is NumberKind.FLOATING_POINT:
            return Value.floating_point(_normalize_number(scalar), 64)
        if number is NumberKind.INTEGER:
            return Value.signed_integer(_normalize_number(scalar), 64)
        return Value.string(scalar)
    raise MirrorError("unsupported YAML node")


def write(value: Value) -> str:
    """Render a value tree as a block-style YAML document."""
    text = yaml.serialize(
        _to_format(value),
        Dumper=yaml.SafeDumper,
        allow_unicode=True,
        width=1 << 30,
    )
    text = text.removesuffix("\n")
    return text.removesuffix("\n...")


def read(text: str) -> Value:
    """Parse the first document of a YAML stream into a value tree."""
    return _from_format(_compose(text))