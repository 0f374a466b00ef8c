"""Where each field of a packet sits in the buffer, and how large packets are."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from wirepack.fieldtypes import Misc, PacketSpecError, Primitive, Vector
from wirepack.spec import Field, PacketSpec

__all__ = ["FieldSlot", "Layout", "compute_layout"]

LengthOf = Callable[[int], int]
"""Returns the byte length of the variable-length field with the given index."""


@dataclass(frozen=True)
class FieldSlot:
    """Placement of one field.

    ``bit_offset`` counts the fixed-size bits before the field; the field's
    byte offset in a real buffer also includes the lengths of the fields
    listed in ``variable_before``. ``parts`` holds the primitive pieces the
    field is read from, as ``(byte delta from the field start, bit shift
    within that byte, type)``; it is empty for plain vectors.
    """

    index: int
    field: Field
    bit_offset: int
    variable_before: tuple[int, ...] = ()
    parts: tuple[tuple[int, int, Primitive], ...] = ()

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def byte_offset(self) -> int:
        """Fixed part of the field's byte offset."""
        return self.bit_offset // 8

    @property
    def bit_shift(self) -> int:
        """Offset in bits of the field inside its first byte."""
        return self.bit_offset % 8


def _record_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record[name]
    return getattr(record, name)


@dataclass(frozen=True)
class Layout:
    """Placement of every field of a packet description."""

    spec: PacketSpec
    slots: tuple[FieldSlot, ...]
    fixed_bits: int
    payload_index: int

    def slot(self, name: str) -> FieldSlot:
        """The slot of the field called ``name``."""
        for slot in self.slots:
            if slot.name == name:
                return slot
        raise KeyError(f"no field named {name!r}")

    def offset_of(self, index: int, length_of: LengthOf) -> int:
        """Byte offset of field ``index`` given the lengths of variable fields."""
        slot = self.slots[index]
        return slot.byte_offset + sum(length_of(i) for i in slot.variable_before)

    def payload_bounds(self, length_of: LengthOf, packet_len: int) -> tuple[int, int]:
        """Start and end of the payload inside a buffer of ``packet_len`` bytes."""
        start = self.offset_of(self.payload_index, length_of)
        if self.spec.fields[self.payload_index].length is None:
            end = packet_len
        else:
            end = min(start + length_of(self.payload_index), packet_len)
        if packet_len <= start:
            return packet_len, packet_len
        return start, end

    def minimum_packet_size(self) -> int:
        """Bytes taken by the fixed-size fields, rounded up."""
        return -(-self.fixed_bits // 8)

    def packet_size(self, length_of: LengthOf) -> int:
        """Size of a packet whose variable-length fields have the given lengths."""
        return self.fixed_bits // 8 + sum(
            length_of(slot.index) for slot in self.slots if slot.field.length is not None
        )

    def struct_size(self, record: Any) -> int:
        """Bytes needed to store ``record`` (a mapping or an object with field attributes)."""
        total = self.fixed_bits // 8
        for field in self.spec.fields:
            if field.struct_item_size is not None:
                total += len(_record_value(record, field.name)) * field.struct_item_size
        return total


def _constructed(field: Field) -> bool:
    ty = field.ty
    if isinstance(ty, Misc):
        return True
    return (
        isinstance(ty, Vector)
        and isinstance(ty.inner, Misc)
        and field.construct_with is not None
    )


def compute_layout(spec: PacketSpec) -> Layout:
    """Place every field of ``spec``."""
    bit = 0
    variable: list[int] = []
    slots = []
    payload_index = None
    last = len(spec.fields) - 1
    for index, field in enumerate(spec.fields):
        if field.is_payload:
            if field.length is None and index != last:
                raise PacketSpecError(
                    "#[payload] must specify a #[length_fn], unless it is the "
                    "last field of a packet"
                )
            payload_index = index
        start = bit
        parts = []
        if isinstance(field.ty, Primitive):
            parts.append((0, bit % 8, field.ty))
            bit += field.ty.size
        elif _constructed(field):
            for arg in field.construct_with or ():
                parts.append((bit // 8 - start // 8, bit % 8, arg))
                bit += arg.size
        slots.append(
            FieldSlot(
                index=index,
                field=field,
                bit_offset=start,
                variable_before=tuple(variable),
                parts=tuple(parts),
            )
        )
        if field.length is not None:
            variable.append(index)
    if payload_index is None:
        raise PacketSpecError("#[packet]'s must contain a payload")
    return Layout(spec=spec, slots=tuple(slots), fixed_bits=bit, payload_index=payload_index)