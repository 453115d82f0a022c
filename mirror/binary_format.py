"""Compact binary encoding of value trees, and length-prefixed frames for streams."""

from __future__ import annotations

import enum
import re
import struct
from typing import Any

from .codec import deserialize, serialize
from .scalars import floating_to_string, parse_floating_point
from .value import Kind, MirrorError, Value

MAGIC = b"MIRR\x01"

_U64_MAX = (1 << 64) - 1
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_FRAME_HEADER = struct.Struct(">I")

_SIGNED_TEXT = re.compile(r"-?[0-9]+")
_UNSIGNED_TEXT = re.compile(r"[0-9]+")

_UNEXPECTED_END = "unexpected end of binary document"
_BAD_VARUINT = "invalid variable-length integer"


class _Tag(enum.IntEnum):
    OBJECT = 1
    ARRAY = 2
    STRING = 3
    CHARACTER = 4
    SIGNED_INTEGER = 5
    UNSIGNED_INTEGER = 6
    FLOATING_POINT = 7
    BOOLEAN = 8
    NULL = 9


class _Encoding(enum.IntEnum):
    BINARY = 0
    TEXT = 1


_FLOAT_FORMATS = {32: struct.Struct("<f"), 64: struct.Struct("<d")}


def _zigzag_encode(number: int) -> int:
    return ((number << 1) ^ (number >> 63)) & _U64_MAX


def _zigzag_decode(number: int) -> int:
    return (number >> 1) ^ -(number & 1)


def _parse_signed(text: str) -> int | None:
    if _SIGNED_TEXT.fullmatch(text) is None:
        return None
    number = int(text)
    return number if _I64_MIN <= number <= _I64_MAX else None


def _parse_unsigned(text: str) -> int | None:
    if _UNSIGNED_TEXT.fullmatch(text) is None:
        return None
    number = int(text)
    return number if number <= _U64_MAX else None


class _Writer:
    def __init__(self) -> None:
        self._out = bytearray(MAGIC)

    def finish(self) -> bytes:
        return bytes(self._out)

    def value(self, node: Value) -> None:
        kind = node.kind
        if kind is Kind.OBJECT:
            self._byte(_Tag.OBJECT)
            self._varuint(len(node.fields))
            for name, child in node.fields:
                self._string(name)
                self.value(child)
        elif kind is Kind.ARRAY:
            self._byte(_Tag.ARRAY)
            self._varuint(len(node.elements))
            for element in node.elements:
                self.value(element)
        elif kind is Kind.STRING:
            self._byte(_Tag.STRING)
            self._string(node.text)
        elif kind is Kind.CHARACTER:
            self._byte(_Tag.CHARACTER)
            self._varuint(node.bits)
            self._string(node.text)
        elif kind is Kind.SIGNED_INTEGER:
            self._byte(_Tag.SIGNED_INTEGER)
            self._integer(node, _parse_signed(node.text), _zigzag_encode)
        elif kind is Kind.UNSIGNED_INTEGER:
            self._byte(_Tag.UNSIGNED_INTEGER)
            self._integer(node, _parse_unsigned(node.text), lambda number: number)
        elif kind is Kind.FLOATING_POINT:
            self._byte(_Tag.FLOATING_POINT)
            self._floating_point(node)
        elif kind is Kind.BOOLEAN:
            self._byte(_Tag.BOOLEAN)
            self._byte(1 if node.boolean else 0)
        else:
            self._byte(_Tag.NULL)

    def _byte(self, byte: int) -> None:
        self._out.append(int(byte))

    def _varuint(self, number: int) -> None:
        if number < 0:
            raise MirrorError("cannot encode a negative size")
        while number >= 0x80:
            self._out.append((number & 0x7F) | 0x80)
            number >>= 7
        self._out.append(number)

    def _string(self, text: str) -> None:
        encoded = text.encode("utf-8")
        self._varuint(len(encoded))
        self._out += encoded

    def _integer(self, node: Value, parsed: int | None, encode: Any) -> None:
        self._varuint(node.bits)
        if parsed is None:
            self._byte(_Encoding.TEXT)
            self._string(node.text)
            return
        self._byte(_Encoding.BINARY)
        self._varuint(encode(parsed))

    def _floating_point(self, node: Value) -> None:
        self._varuint(node.bits)
        layout = _FLOAT_FORMATS.get(node.bits)
        if layout is None:
            self._byte(_Encoding.TEXT)
            self._string(node.text)
            return
        parsed = parse_floating_point(node.text, node.bits)
        self._byte(_Encoding.BINARY)
        self._out += layout.pack(parsed)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._position = 0

    def document(self) -> Value:
        if not self._data.startswith(MAGIC):
            raise MirrorError("invalid binary document")
        self._position = len(MAGIC)
        output = self._value()
        if self._position != len(self._data):
            raise MirrorError("trailing data in binary document")
        return output

    def _byte(self) -> int:
        if self._position >= len(self._data):
            raise MirrorError(_UNEXPECTED_END)
        byte = self._data[self._position]
        self._position += 1
        return byte

    def _take(self, count: int) -> bytes:
        if count > len(self._data) - self._position:
            raise MirrorError(_UNEXPECTED_END)
        chunk = self._data[self._position : self._position + count]
        self._position += count
        return chunk

    def _varuint(self) -> int:
        number = 0
        shift = 0
        while True:
            byte = self._byte()
            if shift >= 64:
                raise MirrorError(_BAD_VARUINT)
            if shift == 63 and (byte & 0x7F) > 1:
                raise MirrorError(_BAD_VARUINT)
            number |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return number
            shift += 7

    def _string(self) -> str:
        raw = self._take(self._varuint())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as error:
            raise MirrorError("invalid string in binary document") from error

    def _encoding(self) -> _Encoding:
        byte = self._byte()
        try:
            return _Encoding(byte)
        except ValueError:
            raise MirrorError("invalid numeric encoding") from None

    def _value(self) -> Value:
        byte = self._byte()
        try:
            tag = _Tag(byte)
        except ValueError:
            raise MirrorError("unknown binary value kind") from None

        if tag is _Tag.OBJECT:
            count = self._varuint()
            fields = []
            for _ in range(count):
                name = self._string()
                fields.append((name, self._value()))
            return Value(kind=Kind.OBJECT, fields=fields)
        if tag is _Tag.ARRAY:
            count = self._varuint()
            output = Value.array()
            output.elements.extend(self._value() for _ in range(count))
            return output
        if tag is _Tag.STRING:
            return Value.string(self._string())
        if tag is _Tag.CHARACTER:
            bits = self._varuint()
            return Value.character(self._string(), bits)
        if tag is _Tag.SIGNED_INTEGER:
            return self._integer(Value.signed_integer, _zigzag_decode)
        if tag is _Tag.UNSIGNED_INTEGER:
            return self._integer(Value.unsigned_integer, lambda number: number)
        if tag is _Tag.FLOATING_POINT:
            return self._floating_point()
        if tag is _Tag.BOOLEAN:
            flag = self._byte()
            if flag > 1:
                raise MirrorError("invalid boolean value")
            return Value.boolean_value(flag == 1)
        return Value.null()

    def _integer(self, factory: Any, decode: Any) -> Value:
        bits = self._varuint()
        if self._encoding() is _Encoding.TEXT:
            return factory(self._string(), bits)
        return factory(str(decode(self._varuint())), bits)

    def _floating_point(self) -> Value:
        bits = self._varuint()
        if self._encoding() is _Encoding.TEXT:
            return Value.floating_point(self._string(), bits)
        layout = _FLOAT_FORMATS.get(bits)
        if layout is None:
            raise MirrorError("unsupported binary floating-point width")
        (number,) = layout.unpack(self._take(layout.size))
        return Value.floating_point(floating_to_string(number, bits), bits)


def write(value: Value) -> bytes:
    """Encode a value tree as a binary document."""
    writer = _Writer()
    writer.value(value)
    return writer.finish()


def read(data: bytes | bytearray | memoryview) -> Value:
    """Decode a binary document into a value tree."""
    return _Reader(bytes(data)).document()


def encode_frame(message: Any) -> bytes:
    """Serialize ``message`` into a binary payload behind a 4-byte big-endian size."""
    payload = write(serialize(message))
    if len(payload) > 0xFFFFFFFF:
        raise MirrorError("frame payload is too large")
    return _FRAME_HEADER.pack(len(payload)) + payload


def decode_frame(frame: bytes | bytearray | memoryview, message_type: Any) -> Any:
    """Read a message of ``message_type`` back from one complete frame."""
    frame = bytes(frame)
    if len(frame) < _FRAME_HEADER.size:
        raise MirrorError("incomplete TCP frame")
    (payload_size,) = _FRAME_HEADER.unpack_from(frame)
    payload = frame[_FRAME_HEADER.size :]
    if len(payload) != payload_size:
        raise MirrorError("TCP frame size mismatch")
    return deserialize(read(payload), message_type)