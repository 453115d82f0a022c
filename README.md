# mirror

Type-driven serialization for Python dataclasses.

`mirror` walks dataclasses, containers, optionals, tuples, unions and
fixed-width scalars, guided by their type hints, and turns them into a typed
value tree (`mirror.value.Value`). Each node keeps its kind and, for numbers,
their text and bit width, so the tree can be written as JSON, YAML or a compact
binary document and read back into the same objects.

## Install

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Serializing objects

```python
from dataclasses import dataclass

from mirror import binary_format, json_format, yaml_format
from mirror.codec import deserialize, serialize
from mirror.scalars import Int32


@dataclass
class Point:
    x: Int32 = 0
    y: Int32 = 0


tree = serialize(Point(23, 67), Point)

document = json_format.write(tree)            # str
point = deserialize(json_format.read(document), Point)

yaml_document = yaml_format.write(tree)       # str
same_point = deserialize(yaml_format.read(yaml_document), Point)

payload = binary_format.write(tree)           # bytes
again = deserialize(binary_format.read(payload), Point)
```

`serialize(obj, hint)` uses the type of `obj` when no hint is given;
`deserialize(node, hint)` always needs the target type. Field types are read
from the dataclass annotations, which must be real types: a module using
`from __future__ import annotations` gets a `TypeError`.

Objects carry a `_mirror_type` field holding their type name (see
`mirror.codec.type_name`). On deserialization a mismatched type name, a missing
field, a wrong value kind, a wrong element count or an out-of-range number
raises `mirror.value.MirrorError`, a subclass of `RuntimeError`. Types that
cannot be handled at all raise `TypeError`.

### Supported types

* fixed-width integers and floats from `mirror.scalars`: `Int8`, `UInt8`,
  `Int16`, `UInt16`, `Int32`, `UInt32`, `Int64`, `UInt64`, `Float32`,
  `Float64`; plain `int` and `float` are treated as `Int64` and `Float64`
* characters and octets: `Char` (8-bit signed), `Char16`, `Char32`, `Byte`
* `bool`, `str`, `None`, `Monostate` (stored as null) and enums (stored by
  their value)
* `list`, `set`, `frozenset`, `deque`, `dict` and other mappings (stored as a
  list of key/value entries), `tuple[...]` and `tuple[X, ...]`
* `FixedSize[Int32, 3]`: a list that must have exactly that many elements
* `Optional[X]`: `None` is stored as null
* `Variant[A, B]`: values wrapped as `Variant(index, value)`; the index is kept,
  so alternatives of the same type stay apart. A plain `Union[A, B]` is stored
  the same way and read back as the bare value.
* dataclasses, nested to any depth

### Custom adapters

```python
from mirror.codec import Adapter, register_adapter, serialize, deserialize
from mirror.value import Value


class CustomId:
    def __init__(self, number: int) -> None:
        self.number = number


class CustomIdAdapter(Adapter):
    def serialize(self, obj):
        return Value.string(str(obj.number))

    def deserialize(self, node):
        return CustomId(int(node.text))


register_adapter(CustomId, CustomIdAdapter())

tree = serialize(CustomId(42))          # a string node with text "42"
restored = deserialize(tree, CustomId)
```

An adapter applies to values whose type is exactly the registered class and
takes precedence over the built-in handling.

## Formats

* `mirror.json_format`: `write` renders compact JSON with object keys sorted;
  `read` parses JSON, turning non-negative integers into unsigned 64-bit nodes,
  negative ones into signed 64-bit nodes and fractions into 64-bit floats.
* `mirror.yaml_format`: `write` renders block-style YAML; `read` parses the
  first document of a stream. Plain scalars `true`/`false` become booleans and
  decimal numbers become 64-bit integers or floats (`classify_number` tells
  which); everything else is a string.
* `mirror.binary_format`: `write` and `read` handle a tagged binary encoding
  starting with the bytes `MIRR\x01`; integers are variable-length, 32- and
  64-bit floats are stored as raw little-endian IEEE values, and bit widths
  are preserved.

### Binary frames

`binary_format.encode_frame(message)` serializes a message and prefixes the
binary payload with its 4-byte big-endian length.
`binary_format.decode_frame(frame, message_type)` checks the length and decodes
the message; a short frame or a size mismatch raises `MirrorError`.

## SQL statements

`mirror.sql` builds parameterised statements from dataclasses:

```python
from dataclasses import dataclass
from typing import Optional

from mirror import sql


@sql.table("users", primary_key="id")
@dataclass
class User:
    id: int = 0
    name: str = ""
    email: Optional[str] = None


user = User(42, "username", None)

statement = sql.insert(user)
statement.text    # "INSERT INTO users (id, name, email) VALUES (?, ?, ?)"
statement.binds   # [42, "username", None]

sql.update(user)            # UPDATE users SET name = ?, email = ? WHERE id = ?
sql.select_by_id(User, 42)  # SELECT id, name, email FROM users WHERE id = ?
sql.delete_by_id(User, 42)  # DELETE FROM users WHERE id = ?
```

Without `sql.table` the table is named after the class and the primary key is
`id`. `update` raises `MirrorError` when the model has no primary key field.
Values are converted with `sql.bind` (to `None`, `bool`, 64-bit `int`,
`float`, `str` or `bytes`); register conversions for other types, enums
included, with `sql.register_bind_adapter`.

## What it does not do

`mirror` is a library only: it has no command-line tool. `mirror.sql` builds
statement text and bind lists but does not connect to or run anything on a
database, and the binary frame helpers work on complete byte strings without
opening sockets or reading streams.