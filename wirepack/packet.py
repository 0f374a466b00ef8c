"""Packet definitions and zero-copy views over packet buffers."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, Iterable, Iterator, Optional

from wirepack.fields import read_primitive, read_vector, write_primitive, write_vector
from wirepack.fieldtypes import Misc, Primitive
from wirepack.layout import FieldSlot, Layout, compute_layout
from wirepack.lengthexpr import LengthExpr
from wirepack.records import debug_string, make_record_type
from wirepack.spec import FieldSpec, PacketSpec, make_packet

__all__ = ["PacketDefinition", "PacketView", "MutablePacketView", "define_packet"]


def _byte_view(data: Any) -> memoryview:
    view = memoryview(data)
    if view.ndim != 1 or view.format != "B":
        view = view.cast("B")
    return view


def _record_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record[name]
    return getattr(record, name)


def _primitive_values(value: Any) -> tuple:
    if hasattr(value, "to_primitive_values"):
        return tuple(value.to_primitive_values())
    if isinstance(value, (tuple, list)):
        return tuple(value)
    raise TypeError(f"cannot split {value!r} into primitive values")


class PacketDefinition:
    """A packet layout together with its record type and name lookup.

    ``namespace`` maps type names used by the fields to constructors or to
    other packet definitions, and constant names used in length expressions
    to their values.
    """

    def __init__(
        self, spec: PacketSpec, layout: Layout, record: type, namespace: Mapping[str, Any]
    ) -> None:
        self.spec = spec
        self.layout = layout
        self.record = record
        self.namespace = namespace

    @property
    def name(self) -> str:
        return self.spec.base_name

    def new(self, data: Any) -> "PacketView":
        """A read-only view over ``data``; raises ValueError if it is too short."""
        return PacketView(self, data)

    def new_mutable(self, data: Any) -> "MutablePacketView":
        """A writable view over ``data``; raises ValueError if it is too short."""
        return MutablePacketView(self, data)

    def minimum_packet_size(self) -> int:
        """Bytes taken by the fixed-size fields."""
        return self.layout.minimum_packet_size()

    def packet_size(self, record: Any) -> int:
        """Bytes needed to store ``record``."""
        return self.layout.struct_size(record)

    def iterate(self, data: Any) -> Iterator["PacketView"]:
        """Yield consecutive packets found in ``data``."""
        buf = _byte_view(data).toreadonly()
        minimum = self.minimum_packet_size()
        while len(buf) > 0 and len(buf) >= minimum:
            view = PacketView(self, buf)
            yield view
            step = min(view.packet_size(), len(buf))
            if step == 0:
                return
            buf = buf[step:]

    def __repr__(self) -> str:
        return f"PacketDefinition({self.name!r})"


class PacketView:
    """Read access to the fields of a packet stored in a buffer."""

    _mutable = False

    def __init__(self, definition: PacketDefinition, data: Any) -> None:
        buf = _byte_view(data)
        if self._mutable and buf.readonly:
            raise TypeError("a writable buffer is required")
        if not self._mutable:
            buf = buf.toreadonly()
        minimum = definition.minimum_packet_size()
        if len(buf) < minimum:
            raise ValueError(
                f"buffer of {len(buf)} bytes is shorter than the minimum "
                f"{definition.spec.packet_name()} size of {minimum}"
            )
        self._definition = definition
        self._data = buf

    @property
    def definition(self) -> PacketDefinition:
        return self._definition

    @property
    def name(self) -> str:
        spec = self._definition.spec
        return spec.mutable_packet_name() if self._mutable else spec.packet_name()

    def __len__(self) -> int:
        return len(self._data)

    def packet(self) -> memoryview:
        """The whole underlying buffer."""
        return self._data

    def payload(self) -> memoryview:
        """The payload part of the buffer."""
        start, end = self._definition.layout.payload_bounds(self._length_of, len(self._data))
        return self._data[start:end]

    def packet_size(self) -> int:
        """Size of this packet as given by its fields."""
        return self._definition.layout.packet_size(self._length_of)

    def to_immutable(self) -> "PacketView":
        """A read-only view over the same buffer."""
        return PacketView(self._definition, self._data)

    def from_packet(self) -> Any:
        """Copy every field into a record."""
        values = {}
        for field in self._definition.spec.fields:
            if field.is_payload:
                values[field.name] = list(self.payload())
            else:
                values[field.name] = self.get(field.name)
        return self._definition.record(**values)

    def get(self, name: str) -> Any:
        """The value of field ``name``."""
        layout = self._definition.layout
        slot = layout.slot(name)
        field = slot.field
        ty = field.ty
        offset = layout.offset_of(slot.index, self._length_of)
        if isinstance(ty, Primitive):
            _, shift, prim = slot.parts[0]
            return read_primitive(self._data, offset, shift, prim)
        if isinstance(ty, Misc):
            return self._construct(ty.name, self._read_parts(slot, offset))
        inner = ty.inner
        if isinstance(inner, Primitive):
            if field.is_payload:
                start, end = layout.payload_bounds(self._length_of, len(self._data))
                return read_vector(self._data, start, end - start, inner)
            return read_vector(self._data, offset, self._field_length(slot, offset), inner)
        length = self._field_length(slot, offset)
        if field.construct_with is not None:
            size = field.struct_item_size
            return [
                self._construct(inner.name, self._read_parts(slot, offset + k * size))
                for k in range(length // size)
            ]
        nested = self._lookup_definition(inner.name)
        end = min(offset + length, len(self._data))
        return [view.from_packet() for view in nested.iterate(self._data[offset:end])]

    def get_raw(self, name: str) -> memoryview:
        """The bytes of the variable-length field ``name``, without copying."""
        layout = self._definition.layout
        slot = layout.slot(name)
        if not slot.field.is_vector or slot.field.is_payload:
            raise TypeError(f"field {name!r} is not a variable-length field")
        start = layout.offset_of(slot.index, self._length_of)
        end = min(start + self._length_of(slot.index), len(self._data))
        return self._data[start:end]

    def __repr__(self) -> str:
        values = {
            field.name: self.get(field.name)
            for field in self._definition.spec.fields
            if not field.is_payload
        }
        return debug_string(self.name, values)

    def _length_of(self, index: int) -> int:
        length = self._definition.spec.fields[index].length
        if isinstance(length, LengthExpr):
            values = {name: self.get(name) for name in length.fields}
            return length.evaluate(values, self._definition.namespace)
        return int(length(self.to_immutable()))

    def _field_length(self, slot: FieldSlot, offset: int) -> int:
        if slot.field.length is not None:
            return self._length_of(slot.index)
        return max(len(self._data) - offset, 0)

    def _read_parts(self, slot: FieldSlot, base: int) -> list[int]:
        return [
            read_primitive(self._data, base + delta, shift, ty)
            for delta, shift, ty in slot.parts
        ]

    def _lookup(self, name: str) -> Any:
        try:
            return self._definition.namespace[name]
        except KeyError:
            raise LookupError(f"type {name!r} is not defined in the packet namespace") from None

    def _construct(self, type_name: str, values: list[int]) -> Any:
        constructor = self._lookup(type_name)
        if not callable(constructor):
            raise TypeError(f"{type_name!r} is not a constructor")
        return constructor(*values)

    def _lookup_definition(self, name: str) -> PacketDefinition:
        found = self._lookup(name)
        if not isinstance(found, PacketDefinition):
            raise TypeError(f"{name!r} is not a packet definition")
        return found


class MutablePacketView(PacketView):
    """Read and write access to the fields of a packet stored in a buffer."""

    _mutable = True

    def set(self, name: str, value: Any) -> None:
        """Store ``value`` in field ``name``."""
        layout = self._definition.layout
        slot = layout.slot(name)
        field = slot.field
        ty = field.ty
        offset = layout.offset_of(slot.index, self._length_of)
        if isinstance(ty, Primitive):
            _, shift, prim = slot.parts[0]
            write_primitive(self._data, offset, shift, prim, value)
            return
        if isinstance(ty, Misc):
            self._write_parts(slot, offset, _primitive_values(value))
            return
        inner = ty.inner
        if isinstance(inner, Primitive):
            limit = self._length_of(slot.index) if field.length is not None else None
            write_vector(self._data, offset, inner, value, limit)
            return
        if field.construct_with is not None:
            size = field.struct_item_size
            for k, item in enumerate(value):
                self._write_parts(slot, offset + k * size, _primitive_values(item))
            return
        nested = self._lookup_definition(inner.name)
        end = offset + self._field_length(slot, offset)
        current = offset
        for item in value:
            view = nested.new_mutable(self._data[current:])
            view.populate(item)
            current += view.packet_size()
            if current > end:
                raise ValueError(f"values for {name!r} exceed the field length")

    def populate(self, record: Any) -> None:
        """Store every field of ``record`` (a mapping or an object with field attributes)."""
        for field in self._definition.spec.fields:
            self.set(field.name, _record_value(record, field.name))

    def _write_parts(self, slot: FieldSlot, base: int, values: tuple) -> None:
        if len(values) != len(slot.parts):
            raise ValueError(
                f"field {slot.name!r} takes {len(slot.parts)} primitive values, got {len(values)}"
            )
        for (delta, shift, ty), value in zip(slot.parts, values):
            write_primitive(self._data, base + delta, shift, ty, value)


def define_packet(
    name: str,
    fields: Iterable[FieldSpec],
    namespace: Optional[MutableMapping[str, Any]] = None,
) -> PacketDefinition:
    """Validate ``fields`` and build a packet definition called ``name``.

    The definition is added to ``namespace`` under ``name`` so that other
    packets may contain it.
    """
    spec = make_packet(name, fields)
    layout = compute_layout(spec)
    names = {} if namespace is None else namespace
    definition = PacketDefinition(spec, layout, make_record_type(spec), names)
    names[name] = definition
    return definition