import enum
import re
from dataclasses import dataclass, field
from typing import Optional, Union

import pytest

from mirror.codec import (
    Adapter,
    FixedSize,
    Variant,
    deserialize,
    register_adapter,
    serialize,
    type_name,
)
from mirror.scalars import (
    Byte,
    Char,
    Float32,
    Int8,
    Int16,
    Int32,
    Monostate,
    UInt8,
    UInt16,
    UInt32,
)
from mirror.value import Kind, MirrorError, Value


class Mode(UInt16, enum.Enum):
    IDLE = 1
    ACTIVE = 42


@dataclass
class Point:
    x: Int32 = Int32(0)
    y: Int32 = Int32(0)


@dataclass
class CustomId:
    value: int = 0


class CustomIdAdapter(Adapter):
    def serialize(self, obj):
        return Value.string(str(obj.value))

    def deserialize(self, node):
        return CustomId(int(node.text))


register_adapter(CustomId, CustomIdAdapter())


@dataclass
class PointerTypes:
    unique: Optional[Point] = None
    shared: Optional[Point] = None


@dataclass
class Containers:
    fixed: FixedSize[Int16, 3]
    vector: list[str]
    numbers: set[Int32]
    mapping: dict[str, Int32]
    pair: tuple[Int32, str]
    variant: Variant[Int32, str]
    nullable: Variant[Monostate, Point]
    mode: Mode = Mode.ACTIVE
    present: Optional[UInt32] = None
    empty: Optional[str] = None
    rows: list[dict[str, Union[int, str]]] = field(default_factory=list)


def _message(text):
    return "^" + re.escape(text) + "$"


def test_custom_adapter_overrides_dispatch():
    tree = serialize(CustomId(42))
    assert tree.kind is Kind.STRING
    assert tree.text == "42"
    assert deserialize(tree, CustomId).value == 42


@pytest.mark.parametrize(
    "node, hint, message",
    [
        (Value.string("true"), bool, "unexpected value kind"),
        (Value.string("1"), Int32, "expected integer"),
        (Value.string("1"), UInt32, "expected integer"),
        (Value.signed_integer("1", 32), str, "unexpected value kind"),
        (Value.string("a"), Char, "unexpected value kind"),
        (Value.string("1"), Byte, "unexpected value kind"),
        (Value.string("null"), type(None), "unexpected value kind"),
        (Value.string("null"), Monostate, "unexpected value kind"),
        (Value.signed_integer("128", 64), Int8, "integer value is out of range for target type"),
        (Value.signed_integer("-1", 64), UInt8, "integer value is out of range for target type"),
        (Value.unsigned_integer("256", 64), Byte, "integer value is out of range for target type"),
        (Value.signed_integer("12x", 64), Int32, "invalid numeric value"),
        (
            Value.floating_point("1e100", 64),
            Float32,
            "floating-point value is out of range for target type",
        ),
    ],
)
def test_scalar_errors(node, hint, message):
    with pytest.raises(MirrorError, match=_message(message)):
        deserialize(node, hint)


def test_unexpected_object_type():
    node = Value.object("OtherPoint")
    node.fields.append(("x", Value.signed_integer("1", 32)))
    node.fields.append(("y", Value.signed_integer("2", 32)))
    with pytest.raises(MirrorError, match=_message("unexpected object type")):
        deserialize(node, Point)


def test_missing_object_field():
    node = Value.object("Point")
    node.fields.append(("x", Value.signed_integer("1", 32)))
    with pytest.raises(MirrorError, match=_message("missing required field")):
        deserialize(node, Point)


def test_fixed_array_count_mismatch():
    with pytest.raises(MirrorError, match=_message("array element count mismatch")):
        deserialize(Value.array(), FixedSize[Int32, 2])
    node = Value.array()
    node.elements.append(Value.signed_integer("1", 32))
    with pytest.raises(MirrorError, match=_message("array element count mismatch")):
        deserialize(node, FixedSize[Int32, 2])


def test_tuple_count_mismatch():
    node = Value.array()
    node.elements.append(Value.signed_integer("1", 32))
    with pytest.raises(MirrorError, match=_message("tuple element count mismatch")):
        deserialize(node, tuple[Int32, Int32])


def test_variant_errors():
    node = Value.object("variant")
    node.fields.append(("index", Value.unsigned_integer("99", 32)))
    node.fields.append(("value", Value.signed_integer("1", 32)))
    with pytest.raises(MirrorError, match=_message("variant index is out of range")):
        deserialize(node, Variant[Int32, str])
    missing = Value.object("variant")
    missing.fields.append(("index", Value.unsigned_integer("0", 32)))
    with pytest.raises(MirrorError, match=_message("missing required field")):
        deserialize(missing, Variant[Int32, str])


def test_map_errors():
    node = Value.array()
    node.elements.append(Value.string("not an entry"))
    with pytest.raises(MirrorError, match=_message("unexpected value kind")):
        deserialize(node, dict[str, Int32])
    entry = Value.array()
    entry.elements.append(Value.object("map_entry"))
    with pytest.raises(MirrorError, match=_message("missing required field")):
        deserialize(entry, dict[str, Int32])


def test_optional_points_round_trip_and_null_stays_null():
    source = PointerTypes(unique=Point(1, 2), shared=Point(3, 4))
    output = deserialize(serialize(source), PointerTypes)
    assert output == source
    empty = deserialize(serialize(PointerTypes()), PointerTypes)
    assert empty.unique is None
    assert empty.shared is None


def test_object_tree_shape():
    tree = serialize(Point(1, 2))
    assert [name for name, _ in tree.fields] == ["_mirror_type", "x", "y"]
    assert tree.find("_mirror_type").text == "Point"
    assert tree.find("x").bits == 32
    assert type_name(Point) == "Point"


def test_containers_round_trip():
    source = Containers(
        fixed=[1, 2, 3],
        vector=["alpha", "beta"],
        numbers={10, 11, 12},
        mapping={"one": 1, "two": 2},
        pair=(13, "pair"),
        variant=Variant(1, "variant"),
        nullable=Variant(1, Point(15, 16)),
        present=77,
        rows=[{"a": 1, "b": "two"}],
    )
    output = deserialize(serialize(source), Containers)
    assert output == source
    assert output.mode is Mode.ACTIVE


def test_duplicate_variant_alternatives_keep_index():
    hint = Variant[Int32, Int32]
    output = deserialize(serialize(Variant(1, 42), hint), hint)
    assert output == Variant(1, 42)


def test_fixed_size_serialize_rejects_wrong_length():
    with pytest.raises(MirrorError, match=_message("array element count mismatch")):
        serialize([1, 2], FixedSize[Int32, 3])