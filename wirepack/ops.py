"""Bit-level read operations for fields that are not byte aligned."""

from __future__ import annotations

import enum
from dataclasses import dataclass

__all__ = [
    "Endianness",
    "GetOperation",
    "radix16",
    "get_mask",
    "get_shiftl",
    "get_shiftr",
    "operations",
]


class Endianness(enum.Enum):
    """Byte order in which a field is stored on the wire."""

    BIG = "big"
    LITTLE = "little"
    HOST = "host"


def radix16(value: int) -> str:
    """Lower-case hexadecimal digits of ``value`` with no prefix; zero gives ''."""
    if value < 0:
        raise ValueError("value must be non-negative")
    return format(value, "x") if value else ""


@dataclass(frozen=True)
class GetOperation:
    """How one byte of the buffer contributes to a field value.

    The byte is masked, then shifted left by ``shiftl`` and right by ``shiftr``.
    """

    mask: int
    shiftl: int
    shiftr: int

    @property
    def shift(self) -> int:
        """Net right shift; negative for a left shift."""
        return self.shiftr - self.shiftl

    def extract(self, byte: int) -> int:
        """Return this byte's contribution to the field value."""
        masked = byte & self.mask
        shift = self.shift
        return masked << -shift if shift < 0 else masked >> shift

    def __str__(self) -> str:
        mask_str = "{}" if self.mask == 0xFF else f"({{}} & 0x{radix16(self.mask)})"
        shift = self.shift
        if shift == 0:
            return mask_str
        if shift < 0:
            return f"{mask_str} << {-shift}"
        return f"{mask_str} >> {shift}"


def _bits_in_byte(offset: int, bits_remaining: int) -> int:
    if bits_remaining >= 8:
        return 8 - offset
    return min(8 - offset, bits_remaining)


def get_mask(offset: int, bits_remaining: int) -> tuple[int, int]:
    """Mask for up to ``bits_remaining`` bits starting ``offset`` bits into a byte.

    Returns the number of bits the mask covers and the mask itself.
    """
    if not 0 <= offset <= 7:
        raise ValueError(f"bit offset must be in 0..7, got {offset}")
    count = _bits_in_byte(offset, bits_remaining)
    mask = ((0xFF << (8 - count)) & 0xFF) >> offset
    return count, mask


def get_shiftl(offset: int, size: int, byte_number: int, num_bytes: int) -> int:
    """Left shift applied to byte ``byte_number`` of a ``num_bytes`` field."""
    if num_bytes == 1 or byte_number + 1 == num_bytes:
        return 0
    base_shift = 8 - (num_bytes * 8 - offset - size)
    return base_shift + 8 * (num_bytes - byte_number - 2)


def get_shiftr(offset: int, size: int, byte_number: int, num_bytes: int) -> int:
    """Right shift applied to byte ``byte_number`` of a ``num_bytes`` field."""
    if byte_number + 1 == num_bytes:
        return num_bytes * 8 - offset - size
    return 0


def operations(offset: int, size: int) -> list[GetOperation]:
    """Operations reading a big-endian ``size``-bit field ``offset`` bits into a byte."""
    if offset > 7 or offset < 0:
        raise ValueError(f"bit offset must be in 0..7, got {offset}")
    if size == 0 or size > 64 or size < 0:
        raise ValueError(f"field size must be in 1..64 bits, got {size}")

    num_bytes = (offset + size - 1) // 8 + 1
    current_offset = offset
    remaining = size
    ops = []
    for byte_number in range(num_bytes):
        consumed, mask = get_mask(current_offset, remaining)
        ops.append(
            GetOperation(
                mask=mask,
                shiftl=get_shiftl(offset, size, byte_number, num_bytes),
                shiftr=get_shiftr(offset, size, byte_number, num_bytes),
            )
        )
        current_offset = 0
        remaining = max(remaining - consumed, 0)
    return ops