"""Reading and writing field values in a packet buffer."""

from __future__ import annotations

import sys
from typing import Iterable, Optional, Sequence

from wirepack.fieldtypes import Primitive
from wirepack.mutators import read_value, to_little_endian, to_mutator, write_value
from wirepack.ops import Endianness, GetOperation, operations

__all__ = ["read_primitive", "write_primitive", "read_vector", "write_vector"]


def _ops(bit_shift: int, ty: Primitive) -> list[GetOperation]:
    ops = operations(bit_shift, ty.size)
    if ty.endianness is Endianness.LITTLE or (
        ty.endianness is Endianness.HOST and sys.byteorder == "little"
    ):
        ops = to_little_endian(ops)
    return ops


def _require_primitive(ty: object) -> Primitive:
    if not isinstance(ty, Primitive):
        raise TypeError(f"expected a primitive type, got {ty!r}")
    return ty


def _check_span(data: Sequence[int], start: int, count: int) -> None:
    if start < 0 or start + count > len(data):
        raise IndexError(
            f"bytes {start}..{start + count} out of range for a buffer of {len(data)} bytes"
        )


def _container_bits(size: int) -> int:
    return next(bits for bits in (8, 16, 32, 64) if size <= bits)


def _check_value(ty: Primitive, value: int) -> None:
    if not 0 <= value < 1 << _container_bits(ty.size):
        raise ValueError(f"value {value} out of range for {ty.ty_str}")


def read_primitive(data: Sequence[int], byte_offset: int, bit_shift: int, ty: Primitive) -> int:
    """Read a ``ty`` field starting ``bit_shift`` bits into ``data[byte_offset]``."""
    ty = _require_primitive(ty)
    ops = _ops(bit_shift, ty)
    _check_span(data, byte_offset, len(ops))
    return read_value(data, byte_offset, ops)


def write_primitive(data, byte_offset: int, bit_shift: int, ty: Primitive, value: int) -> None:
    """Store ``value`` as a ``ty`` field, leaving the surrounding bits untouched.

    Only the field's bits of ``value`` are kept, as for the wire types the
    field names; values outside the range of the backing integer are rejected.
    """
    ty = _require_primitive(ty)
    _check_value(ty, value)
    ops = _ops(bit_shift, ty)
    _check_span(data, byte_offset, len(ops))
    write_value(data, byte_offset, to_mutator(ops), value)


def read_vector(data: Sequence[int], start: int, length: int, ty: Primitive) -> list[int]:
    """Read the whole elements of ``ty`` found in ``length`` bytes from ``start``.

    The range is cut short at the end of the buffer. Elements wider than a
    byte are stored big-endian.
    """
    ty = _require_primitive(ty)
    if length < 0:
        raise ValueError("length must be non-negative")
    if start < 0 or start > len(data):
        raise IndexError(f"offset {start} out of range for a buffer of {len(data)} bytes")
    chunk = bytes(data[start:min(start + length, len(data))])
    if ty.ty_str == "u8":
        return list(chunk)
    if ty.size % 8:
        raise ValueError("unimplemented variable length field")
    width = ty.size // 8
    ops = operations(0, ty.size)
    return [read_value(chunk, pos, ops) for pos in range(0, len(chunk) - width + 1, width)]


def write_vector(
    data, start: int, ty: Primitive, values: Iterable[int], limit: Optional[int] = None
) -> None:
    """Store ``values`` as consecutive ``ty`` elements from byte ``start``.

    ``limit`` caps the number of values accepted, as the field's length does.
    """
    ty = _require_primitive(ty)
    values = list(values)
    if limit is not None and len(values) > limit:
        raise ValueError(f"{len(values)} values exceed the field length {limit}")
    if ty.ty_str == "u8":
        encoded = bytes(values)
        _check_span(data, start, len(encoded))
        data[start:start + len(encoded)] = encoded
        return
    if ty.size % 8:
        raise ValueError("unimplemented variable length field")
    width = ty.size // 8
    for value in values:
        _check_value(ty, value)
    _check_span(data, start, len(values) * width)
    sops = to_mutator(operations(0, ty.size))
    for position, value in enumerate(values):
        write_value(data, start + position * width, sops, value)