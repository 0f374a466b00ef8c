# wirepack

Describe an on-the-wire packet format as a list of fields, then read and write
packets directly inside byte buffers. Fields may be any number of bits wide
from 1 to 64 (`u3`, `u12be`, `u21le`, ...), may start at any bit, and may be
variable-length vectors, values built from several primitives, or nested
packets.

## Installing

```
pip install wirepack
```

## Defining a packet

A packet is described by its name and a list of `wirepack.spec.FieldSpec`
entries, and built with `wirepack.packet.define_packet`. Every packet needs
exactly one payload field; a payload that is not the last field must have a
length.

```python
from wirepack.packet import define_packet
from wirepack.spec import FieldSpec

example = define_packet(
    "Example",
    [
        FieldSpec("flags", "u4"),
        FieldSpec("length", "u12be"),
        FieldSpec("payload", "Vec<u8>", payload=True),
    ],
)

example.minimum_packet_size()   # 2
```

Primitive types are written `u<bits>` with an optional `be`, `le` or `he`
(host order) suffix. A type wider than 8 bits must say which byte order it
uses.

`FieldSpec` takes:

- `payload=True` to mark the payload field;
- `length="expr"` for a `Vec<T>` field: an arithmetic expression (`+ - * / %`
  and parentheses) over the other fields, integers and names without
  lower-case letters, which are looked up in the definition's namespace;
- `length_fn=callable`, which receives a read-only view of the packet and
  returns the field's length in bytes;
- `construct_with=[...]` for fields of other types: the primitive type names
  the value is built from. The type's name must map to a constructor in the
  namespace, and values written back must have a `to_primitive_values()`
  method or be a tuple or list.

A definition that is not valid raises `wirepack.fieldtypes.PacketSpecError`
with a message that says what is wrong.

### Namespaces and nested packets

`define_packet(name, fields, namespace)` stores the new definition in
`namespace` under `name`. The same mapping supplies constructors for
`construct_with` types and the values of constants in length expressions, so
a packet can hold a `Vec<Other>` of a packet defined in the same namespace:

```python
ns = {"HEADER": 2}
define_packet(
    "Option",
    [
        FieldSpec("kind", "u8"),
        FieldSpec("length", "u8"),
        FieldSpec("payload", "Vec<u8>", payload=True, length="length - HEADER"),
    ],
    ns,
)
outer = define_packet(
    "Outer",
    [
        FieldSpec("header_length", "u8"),
        FieldSpec("options", "Vec<Option>", length="header_length - 1"),
        FieldSpec("payload", "Vec<u8>", payload=True),
    ],
    ns,
)

pkt = outer.new(bytes([4, 6, 3, 1, 9]))
pkt.get("options")[0].kind   # 6
```

## Reading and writing

```python
buf = bytearray(4)
view = example.new_mutable(buf)
view.set("flags", 0xA)
view.set("length", 0x123)
view.payload()[:] = b"hi"

packet = example.new(bytes(buf))
packet.get("length")            # 0x123
bytes(packet.payload())         # b"hi"
packet.from_packet()            # a dataclass record holding every field's value
```

`new` and `new_mutable` raise `ValueError` when the buffer is shorter than
the minimum packet size; `new_mutable` needs a writable buffer. Views expose:

- `get(name)` and, on mutable views, `set(name, value)`;
- `get_raw(name)`: the bytes of a non-payload variable-length field, as a
  `memoryview` without copying;
- `packet()` and `payload()`: `memoryview`s over the whole buffer and the
  payload;
- `packet_size()`: the size given by the packet's own fields;
- `from_packet()` and, on mutable views, `populate(record)`, which writes a
  record (a mapping or an object with the field names as attributes);
- `to_immutable()`.

On the definition, `packet_size(record)` gives the number of bytes a record
takes, and `iterate(data)` yields views over consecutive packets in a buffer.

## Lower-level pieces

- `wirepack.ops` and `wirepack.mutators`: the per-byte mask and shift
  operations used to read and write a field, plus `read_value` and
  `write_value`.
- `wirepack.fields`: `read_primitive`, `write_primitive`, `read_vector` and
  `write_vector` on plain buffers.
- `wirepack.layout.compute_layout`: the byte and bit offsets of every field.
- `wirepack.lengthexpr.parse_length_expr`: parse and evaluate length
  expressions.
- `wirepack.render`: textual forms of the read and write operations.

## What it does not do

wirepack only describes and manipulates packets held in memory. It does not
open network interfaces, capture or send traffic, and it ships no ready-made
protocol definitions such as Ethernet, IPv4 or UDP, nor checksum helpers.