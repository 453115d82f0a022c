import enum
from dataclasses import dataclass

import pytest

from mirror.scalars import (
    Byte,
    Char,
    Char16,
    Char32,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Monostate,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    deserialize_scalar,
    floating_to_string,
    integer_to_string,
    is_scalar_type,
    parse_floating_point,
    parse_integer,
    serialize_scalar,
)
from mirror.value import Kind, MirrorError, Value


class Mode(enum.IntEnum):
    IDLE = 1
    ACTIVE = 42


class Colour(enum.Enum):
    RED = 1
    GREEN = 2


@dataclass
class Point:
    x: int = 0
    y: int = 0


def _message(function, *args):
    with pytest.raises(MirrorError) as info:
        function(*args)
    return str(info.value)


@pytest.mark.parametrize(
    "hint, number",
    [
        (Int8, -8),
        (UInt8, 250),
        (Int16, -1234),
        (UInt16, 54321),
        (Int32, -12345678),
        (UInt32, 3456789012),
        (Int64, -1234567890123),
        (UInt64, 9_000_000_000),
    ],
)
def test_fixed_integers_round_trip(hint, number):
    node = serialize_scalar(hint(number))
    expected_kind = Kind.SIGNED_INTEGER if hint.SIGNED else Kind.UNSIGNED_INTEGER
    assert node.kind is expected_kind
    assert node.bits == hint.BITS
    assert node.text == str(number)
    output = deserialize_scalar(node, hint)
    assert output == number
    assert type(output) is hint


def test_plain_int_is_signed_64_bit():
    node = serialize_scalar(-5)
    assert node.kind is Kind.SIGNED_INTEGER
    assert node.bits == 64
    assert node.text == "-5"
    assert deserialize_scalar(node, int) == -5


def test_hint_coerces_plain_values():
    node = serialize_scalar(5, Int32)
    assert node.bits == 32
    assert deserialize_scalar(node, Int32) == 5


def test_fixed_integer_rejects_out_of_range_construction():
    with pytest.raises(ValueError):
        Int8(128)
    with pytest.raises(ValueError):
        UInt8(-1)


def test_float32_round_trip():
    node = serialize_scalar(Float32(3.25))
    assert node.kind is Kind.FLOATING_POINT
    assert node.bits == 32
    assert node.text == "3.25"
    output = deserialize_scalar(node, Float32)
    assert output == 3.25
    assert type(output) is Float32


def test_float64_round_trip():
    node = serialize_scalar(99.125)
    assert node.bits == 64
    assert deserialize_scalar(node, float) == 99.125
    assert deserialize_scalar(node, Float64) == 99.125


@pytest.mark.parametrize("number", [0.1, 1 / 3, 1e-300, -2.5e300, 99.125])
def test_floating_to_string_round_trips_doubles(number):
    assert float(floating_to_string(number, 64)) == number


def test_float32_text_round_trips():
    value = Float32(0.1)
    assert Float32(float(floating_to_string(value, 32))) == value
    assert deserialize_scalar(serialize_scalar(value), Float32) == value


def test_float_from_integer_node():
    assert deserialize_scalar(Value.signed_integer("-42", 64), float) == -42.0


def test_characters_round_trip():
    node = serialize_scalar(Char("x"))
    assert node.kind is Kind.CHARACTER
    assert node.bits == 8
    assert deserialize_scalar(node, Char) == "x"

    wide = serialize_scalar(Char16("z"))
    assert wide.bits == Char16.BITS
    assert deserialize_scalar(wide, Char16) == "z"

    assert deserialize_scalar(serialize_scalar(Char32("\U0001f600")), Char32) == "\U0001f600"


def test_high_char_is_stored_signed():
    node = serialize_scalar(Char("\xe9"))
    assert int(node.text) < 0
    assert deserialize_scalar(node, Char) == "\xe9"


def test_char_construction_checks_width():
    with pytest.raises(ValueError):
        Char("ab")
    with pytest.raises(ValueError):
        Char16("\U0001f600")


def test_byte_round_trip():
    node = serialize_scalar(Byte(200))
    assert node.kind is Kind.UNSIGNED_INTEGER
    assert node.bits == 8
    assert node.text == "200"
    assert deserialize_scalar(node, Byte) == Byte(200)


def test_enums_use_underlying_value():
    node = serialize_scalar(Mode.ACTIVE)
    assert node.text == "42"
    assert deserialize_scalar(node, Mode) is Mode.ACTIVE
    assert deserialize_scalar(serialize_scalar(Colour.GREEN), Colour) is Colour.GREEN


def test_null_like_scalars():
    assert serialize_scalar(None).kind is Kind.NULL
    assert deserialize_scalar(Value.null(), type(None)) is None
    assert serialize_scalar(Monostate()).kind is Kind.NULL
    assert deserialize_scalar(Value.null(), Monostate) == Monostate()


def test_bool_and_string_round_trip():
    assert deserialize_scalar(serialize_scalar(True), bool) is True
    assert deserialize_scalar(serialize_scalar("hello"), str) == "hello"


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
    ],
)
def test_scalar_kind_mismatches(node, hint, message):
    assert _message(deserialize_scalar, node, hint) == message


@pytest.mark.parametrize(
    "node, hint, message",
    [
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
def test_numeric_conversion_failures(node, hint, message):
    assert _message(deserialize_scalar, node, hint) == message


def test_parse_integer_limits():
    assert parse_integer("18446744073709551615", 64, False) == 18446744073709551615
    assert (
        _message(parse_integer, "18446744073709551615", 64, True)
        == "integer value is out of range for target type"
    )
    assert _message(parse_integer, "", 32, True) == "invalid integer value"
    assert _message(parse_integer, "+5", 32, True) == "invalid integer value"


def test_parse_floating_point_rejects_non_numbers():
    assert _message(parse_floating_point, "inf", 64) == "invalid floating-point value"
    assert _message(parse_floating_point, "abc", 64) == "invalid floating-point value"
    assert _message(parse_floating_point, "1.5x", 64) == "invalid floating-point value"
    assert parse_floating_point("3.5", 64) == 3.5


def test_integer_to_string():
    assert integer_to_string(Int32(-5)) == "-5"
    assert integer_to_string(Mode.ACTIVE) == "42"


def test_is_scalar_type():
    assert is_scalar_type(bool)
    assert is_scalar_type(Int8)
    assert is_scalar_type(Mode)
    assert is_scalar_type(type(None))
    assert not is_scalar_type(list)
    assert not is_scalar_type(Point)


def test_non_scalar_hint_raises_type_error():
    with pytest.raises(TypeError):
        deserialize_scalar(Value.null(), Point)
    with pytest.raises(TypeError):
        serialize_scalar("text", Int32)