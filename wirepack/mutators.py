"""Bit-level write operations, derived from the matching read operations."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from wirepack.ops import GetOperation, radix16

__all__ = [
    "SetOperation",
    "mask_high_bits",
    "to_mutator",
    "to_little_endian",
    "read_value",
    "write_value",
]

_U64 = (1 << 64) - 1


@dataclass(frozen=True)
class SetOperation:
    """How one byte of the buffer is updated when a field value is stored.

    ``save_mask`` selects the bits of the old byte to keep, ``value_mask`` the
    bits of the value to store; the masked value is then shifted left by
    ``shiftl`` and right by ``shiftr``.
    """

    save_mask: int
    value_mask: int
    shiftl: int
    shiftr: int

    @property
    def shift(self) -> int:
        """Net right shift; negative for a left shift."""
        return self.shiftr - self.shiftl

    def apply(self, byte: int, value: int) -> int:
        """Return the new content of ``byte`` once ``value`` is stored in it."""
        part = value if self.value_mask == 0xFF else value & self.value_mask
        shift = self.shift
        part = part << -shift if shift < 0 else part >> shift
        part &= 0xFF
        if self.save_mask:
            return ((byte & self.save_mask) | part) & 0xFF
        return part

    def __str__(self) -> str:
        if self.value_mask != 0xFF:
            mask_str = f"({{val}} & 0x{radix16(self.value_mask)})"
        else:
            mask_str = "{val}"
        shift = self.shift
        if shift == 0:
            shift_str = mask_str
        elif shift < 0:
            shift_str = f"{mask_str} << {-shift}"
        else:
            shift_str = f"{mask_str} >> {shift}"
        if self.save_mask:
            save_str = f"({{packet}} & 0x{radix16(self.save_mask)})"
            return f"{{packet}} = ({save_str} | ({shift_str}) as u8) as u8"
        return f"{{packet}} = ({shift_str}) as u8"


def mask_high_bits(bits: int) -> int:
    """A mask of the ``bits`` lowest bits, e.g. ``mask_high_bits(2) == 0b11``."""
    if bits < 0:
        raise ValueError("bit count must be non-negative")
    return (1 << bits) - 1


def to_mutator(ops: Iterable[GetOperation]) -> list[SetOperation]:
    """Convert the operations that read a field into those that write it."""
    return [
        SetOperation(
            save_mask=~op.mask & 0xFF,
            value_mask=(mask_high_bits(bin(op.mask & 0xFF).count("1")) << op.shiftl) & _U64,
            shiftl=op.shiftr,
            shiftr=op.shiftl,
        )
        for op in ops
    ]


def to_little_endian(ops: Sequence[GetOperation]) -> list[GetOperation]:
    """Turn big-endian read operations into little-endian ones."""
    return [replace(op, shiftl=be_op.shiftl) for op, be_op in zip(ops, reversed(ops))]


def read_value(data: Sequence[int], start: int, ops: Sequence[GetOperation]) -> int:
    """Read a field whose first byte is ``data[start]`` using ``ops``."""
    value = 0
    for index, op in enumerate(ops):
        value |= op.extract(data[start + index])
    return value


def write_value(data, start: int, sops: Sequence[SetOperation], value: int) -> None:
    """Store ``value`` into the writable buffer ``data`` starting at byte ``start``."""
    for index, sop in enumerate(sops):
        position = start + index
        data[position] = sop.apply(data[position], value)