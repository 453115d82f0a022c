"""Typed value tree shared by the codec and the document formats."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

TYPE_FIELD = "_mirror_type"


class MirrorError(RuntimeError):
    """Raised when a value tree cannot be built, read or converted."""


class Kind(enum.Enum):
    """The kind of node held by a :class:`Value`."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    CHARACTER = "character"
    SIGNED_INTEGER = "signed_integer"
    UNSIGNED_INTEGER = "unsigned_integer"
    FLOATING_POINT = "floating_point"
    BOOLEAN = "boolean"
    NULL = "null"


@dataclass
class Value:
    """One node of a format-independent document.

    Numbers keep their textual form in ``text`` together with their width in
    ``bits``; objects keep their fields in order, arrays their elements.
    """

    kind: Kind = Kind.NULL
    text: str = ""
    boolean: bool = False
    bits: int = 0
    fields: list[tuple[str, Value]] = field(default_factory=list)
    elements: list[Value] = field(default_factory=list)

    @classmethod
    def object(cls, type_name: str) -> Value:
        """An object node tagged with the name of the type it came from."""
        return cls(kind=Kind.OBJECT, fields=[(TYPE_FIELD, cls.string(type_name))])

    @classmethod
    def string(cls, text: str) -> Value:
        return cls(kind=Kind.STRING, text=text)

    @classmethod
    def character(cls, text: str, bits: int) -> Value:
        return cls(kind=Kind.CHARACTER, text=text, bits=bits)

    @classmethod
    def signed_integer(cls, text: str, bits: int) -> Value:
        return cls(kind=Kind.SIGNED_INTEGER, text=text, bits=bits)

    @classmethod
    def unsigned_integer(cls, text: str, bits: int) -> Value:
        return cls(kind=Kind.UNSIGNED_INTEGER, text=text, bits=bits)

    @classmethod
    def floating_point(cls, text: str, bits: int) -> Value:
        return cls(kind=Kind.FLOATING_POINT, text=text, bits=bits)

    @classmethod
    def boolean_value(cls, boolean: bool) -> Value:
        return cls(kind=Kind.BOOLEAN, boolean=boolean)

    @classmethod
    def array(cls) -> Value:
        return cls(kind=Kind.ARRAY)

    @classmethod
    def null(cls) -> Value:
        return cls()

    def find(self, name: str) -> Value | None:
        """Return the first field called ``name``, or None when there is none."""
        if self.kind is not Kind.OBJECT:
            raise MirrorError("expected object")
        return next((child for key, child in self.fields if key == name), None)


def require_kind(value: Value, expected: Kind) -> None:
    """Raise unless ``value`` is of the ``expected`` kind."""
    if value.kind is not expected:
        raise MirrorError("unexpected value kind")


def require_field(value: Value, name: str) -> Value:
    """Return the field ``name`` of an object node, which must exist."""
    child = value.find(name)
    if child is None:
        raise MirrorError("missing required field")
    return child