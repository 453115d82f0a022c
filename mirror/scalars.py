"""Fixed-width scalar types and their conversion to and from value nodes."""

from __future__ import annotations

import enum
import re
import struct
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar

from .value import Kind, MirrorError, Value, require_kind

_NoneType = type(None)

_INT_OUT_OF_RANGE = "integer value is out of range for target type"
_FLOAT_OUT_OF_RANGE = "floating-point value is out of range for target type"
_INVALID_FLOAT = "invalid floating-point value"
_UNEXPECTED_KIND = "unexpected value kind"

_FLOAT_DIGITS = {32: 9, 64: 17}
_FLOAT_MAX = {
    32: struct.unpack("<f", bytes.fromhex("ffff7f7f"))[0],
    64: sys.float_info.max,
}

_SIGNED_PREFIX = re.compile(r"-?[0-9]+")
_UNSIGNED_PREFIX = re.compile(r"[0-9]+")
_DECIMAL_FLOAT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX_FLOAT = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?"
)
_NON_FINITE = re.compile(r"[+-]?(?:inf(?:inity)?|nan(?:\([0-9A-Za-z_]*\))?)", re.IGNORECASE)


def _int_limits(bits: int, signed: bool) -> tuple[int, int]:
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


def _round_to_width(number: float, bits: int) -> float:
    if bits == 32:
        try:
            return struct.unpack("<f", struct.pack("<f", number))[0]
        except OverflowError:
            raise ValueError(f"{number!r} does not fit in 32 bits") from None
    return number


class _FixedInt(int):
    """An integer limited to a fixed width and signedness."""

    BITS: ClassVar[int] = 64
    SIGNED: ClassVar[bool] = True

    def __new__(cls, value: Any = 0):
        number = super().__new__(cls, value)
        low, high = _int_limits(cls.BITS, cls.SIGNED)
        if not low <= number <= high:
            raise ValueError(f"{int(number)} does not fit in {cls.__name__}")
        return number

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"


class Int8(_FixedInt):
    BITS = 8
    SIGNED = True


class UInt8(_FixedInt):
    BITS = 8
    SIGNED = False


class Int16(_FixedInt):
    BITS = 16
    SIGNED = True


class UInt16(_FixedInt):
    BITS = 16
    SIGNED = False


class Int32(_FixedInt):
    BITS = 32
    SIGNED = True


class UInt32(_FixedInt):
    BITS = 32
    SIGNED = False


class Int64(_FixedInt):
    BITS = 64
    SIGNED = True


class UInt64(_FixedInt):
    BITS = 64
    SIGNED = False


class Byte(_FixedInt):
    """A raw octet, stored as an unsigned 8-bit integer."""

    BITS = 8
    SIGNED = False


class _Float(float):
    """A floating-point number held at a fixed width."""

    BITS: ClassVar[int] = 64

    def __new__(cls, value: Any = 0.0):
        return super().__new__(cls, _round_to_width(float(value), cls.BITS))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({float(self)!r})"


class Float32(_Float):
    BITS = 32


class Float64(_Float):
    BITS = 64


class _Char(str):
    """A single character stored as one code unit of a fixed width."""

    BITS: ClassVar[int] = 8
    SIGNED: ClassVar[bool] = False

    def __new__(cls, value: Any):
        text = super().__new__(cls, value)
        if len(text) != 1:
            raise ValueError(f"{cls.__name__} holds exactly one character")
        if ord(text) >= 1 << cls.BITS:
            raise ValueError(f"{text!r} does not fit in {cls.__name__}")
        return text

    @property
    def code(self) -> int:
        """The code unit as an integer of this type's width and signedness."""
        code = ord(self)
        if self.SIGNED and code >= 1 << (self.BITS - 1):
            code -= 1 << self.BITS
        return code

    @classmethod
    def from_code(cls, code: int) -> _Char:
        return cls(chr(code % (1 << cls.BITS)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str.__repr__(self)})"


class Char(_Char):
    """An 8-bit signed character."""

    BITS = 8
    SIGNED = True


class Char16(_Char):
    BITS = 16
    SIGNED = False


class Char32(_Char):
    BITS = 32
    SIGNED = False


@dataclass(frozen=True)
class Monostate:
    """The empty alternative: holds nothing and is stored as null."""


def floating_to_string(value: float, bits: int = 64) -> str:
    """Format ``value`` with enough digits to read back the same number."""
    try:
        digits = _FLOAT_DIGITS[bits]
    except KeyError:
        raise ValueError(f"unsupported floating-point width: {bits}") from None
    return f"{_round_to_width(float(value), bits):.{digits}g}"


def integer_to_string(value: int) -> str:
    return str(int(value))


def parse_integer(text: str, bits: int, signed: bool) -> int:
    """Parse decimal integer text and check it fits the given width."""
    if not signed and text.startswith("-"):
        raise MirrorError(_INT_OUT_OF_RANGE)

    match = (_SIGNED_PREFIX if signed else _UNSIGNED_PREFIX).match(text)
    if match is None:
        raise MirrorError("invalid integer value")

    parsed = int(match.group())
    low, high = _int_limits(64, signed)
    if not low <= parsed <= high:
        raise MirrorError(_INT_OUT_OF_RANGE)
    if match.end() != len(text):
        raise MirrorError("invalid numeric value")

    low, high = _int_limits(bits, signed)
    if not low <= parsed <= high:
        raise MirrorError(_INT_OUT_OF_RANGE)
    return parsed


def parse_floating_point(text: str, bits: int = 64) -> float:
    """Parse floating-point text and check it is finite and fits the width."""
    try:
        limit = _FLOAT_MAX[bits]
    except KeyError:
        raise ValueError(f"unsupported floating-point width: {bits}") from None

    body = text.lstrip(" \t\n\v\f\r")
    if _DECIMAL_FLOAT.fullmatch(body):
        if abs(Decimal(body)) > Decimal(limit):
            raise MirrorError(_FLOAT_OUT_OF_RANGE)
        parsed = float(body)
    elif _HEX_FLOAT.fullmatch(body):
        try:
            parsed = float.fromhex(body)
        except OverflowError:
            raise MirrorError(_FLOAT_OUT_OF_RANGE) from None
        if abs(parsed) > limit:
            raise MirrorError(_FLOAT_OUT_OF_RANGE)
    elif _NON_FINITE.fullmatch(body):
        raise MirrorError(_INVALID_FLOAT)
    else:
        raise MirrorError(_INVALID_FLOAT)

    return _round_to_width(parsed, bits)


def is_scalar_type(hint: Any) -> bool:
    """Whether ``hint`` names a type that is stored as a single scalar node."""
    if hint is None or hint is _NoneType:
        return True
    if not isinstance(hint, type):
        return False
    if issubclass(hint, enum.Enum):
        return True
    return issubclass(hint, (bool, int, float, str, Monostate))


def _enum_underlying(hint: type[enum.Enum]) -> type:
    for base in hint.__mro__[1:]:
        if base is not object and not issubclass(base, enum.Enum) and is_scalar_type(base):
            return base
    members = list(hint)
    if members and is_scalar_type(type(members[0].value)):
        return type(members[0].value)
    raise TypeError(f"{hint.__name__} has no scalar underlying type")


def _coerce(value: Any, cls: type, accepted: type | tuple[type, ...]) -> Any:
    if isinstance(value, cls):
        return value
    if isinstance(value, bool) or not isinstance(value, accepted):
        raise TypeError(f"cannot store {type(value).__name__} as {cls.__name__}")
    return cls(value)


def _integer_type(hint: type) -> type[_FixedInt]:
    return hint if issubclass(hint, _FixedInt) else Int64


def _float_type(hint: type) -> type[_Float]:
    return hint if issubclass(hint, _Float) else Float64


def serialize_scalar(value: Any, hint: Any = None) -> Value:
    """Convert a scalar to a value node; without ``hint`` the type of ``value`` is used."""
    if hint is None:
        hint = type(value)
    if hint is _NoneType:
        if value is not None:
            raise TypeError(f"cannot store {type(value).__name__} as None")
        return Value.null()
    if not is_scalar_type(hint):
        raise TypeError(f"{hint!r} is not a scalar type")

    if issubclass(hint, Monostate):
        return Value.null()
    if issubclass(hint, bool):
        if not isinstance(value, bool):
            raise TypeError(f"cannot store {type(value).__name__} as bool")
        return Value.boolean_value(value)
    if issubclass(hint, enum.Enum):
        member = hint(value)
        return serialize_scalar(member.value, _enum_underlying(hint))
    if issubclass(hint, _Char):
        char = _coerce(value, hint, str)
        return Value.character(integer_to_string(char.code), hint.BITS)
    if issubclass(hint, Byte):
        return Value.unsigned_integer(integer_to_string(_coerce(value, Byte, int)), Byte.BITS)
    if issubclass(hint, int):
        fixed = _integer_type(hint)
        number = _coerce(value, fixed, int)
        factory = Value.signed_integer if fixed.SIGNED else Value.unsigned_integer
        return factory(integer_to_string(number), fixed.BITS)
    if issubclass(hint, float):
        width = _float_type(hint)
        number = _coerce(value, width, (int, float))
        return Value.floating_point(floating_to_string(number, width.BITS), width.BITS)
    if not isinstance(value, str):
        raise TypeError(f"cannot store {type(value).__name__} as str")
    return Value.string(str(value))


def deserialize_scalar(node: Value, hint: Any) -> Any:
    """Read a scalar of type ``hint`` back from a value node."""
    if hint is None or hint is _NoneType:
        require_kind(node, Kind.NULL)
        return None
    if not is_scalar_type(hint):
        raise TypeError(f"{hint!r} is not a scalar type")

    if issubclass(hint, Monostate):
        require_kind(node, Kind.NULL)
        return Monostate()
    if issubclass(hint, bool):
        require_kind(node, Kind.BOOLEAN)
        return node.boolean
    if issubclass(hint, enum.Enum):
        underlying = deserialize_scalar(node, _enum_underlying(hint))
        try:
            return hint(underlying)
        except ValueError:
            raise MirrorError(f"invalid {hint.__name__} value") from None
    if issubclass(hint, _Char):
        if node.kind not in (Kind.CHARACTER, Kind.SIGNED_INTEGER, Kind.UNSIGNED_INTEGER):
            raise MirrorError(_UNEXPECTED_KIND)
        code = parse_integer(node.text, hint.BITS, hint.SIGNED)
        try:
            return hint.from_code(code)
        except ValueError:
            raise MirrorError("character value is out of range") from None
    if issubclass(hint, Byte):
        if node.kind not in (Kind.UNSIGNED_INTEGER, Kind.SIGNED_INTEGER):
            raise MirrorError(_UNEXPECTED_KIND)
        return Byte(parse_integer(node.text, Byte.BITS, Byte.SIGNED))
    if issubclass(hint, int):
        if node.kind not in (Kind.SIGNED_INTEGER, Kind.UNSIGNED_INTEGER):
            raise MirrorError("expected integer")
        fixed = _integer_type(hint)
        parsed = parse_integer(node.text, fixed.BITS, fixed.SIGNED)
        return parsed if hint is int else hint(parsed)
    if issubclass(hint, float):
        if node.kind not in (Kind.FLOATING_POINT, Kind.SIGNED_INTEGER, Kind.UNSIGNED_INTEGER):
            raise MirrorError(_UNEXPECTED_KIND)
        parsed = parse_floating_point(node.text, _float_type(hint).BITS)
        return parsed if hint is float else hint(parsed)
    require_kind(node, Kind.STRING)
    return node.text if hint is str else hint(node.text)