"""Field type descriptions parsed from type names such as ``u12be`` or ``Vec<u8>``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from wirepack.ops import Endianness

__all__ = [
    "PacketSpecError",
    "Primitive",
    "Vector",
    "Misc",
    "FieldType",
    "parse_ty",
    "make_type",
]

_PRIMITIVE_RE = re.compile(r"u([0-9]+)(be|le|he)?")

_ENDIANNESS_SUFFIX = {
    "be": Endianness.BIG,
    "le": Endianness.LITTLE,
    "he": Endianness.HOST,
}


class PacketSpecError(ValueError):
    """Raised when a packet description is invalid."""


@dataclass(frozen=True)
class Primitive:
    """An unsigned integer of ``size`` bits."""

    ty_str: str
    size: int
    endianness: Endianness


@dataclass(frozen=True)
class Vector:
    """A variable-length sequence of ``inner``."""

    inner: "FieldType"


@dataclass(frozen=True)
class Misc:
    """Any other named type."""

    name: str


FieldType = Union[Primitive, Vector, Misc]


def parse_ty(ty: str) -> Optional[tuple[int, Endianness, bool]]:
    """Parse ``u<bits>[be|le|he]``.

    Returns the size in bits, the endianness (big when no suffix is given) and
    whether the endianness was given explicitly, or None if ``ty`` is not a
    primitive type name.
    """
    match = _PRIMITIVE_RE.fullmatch(ty)
    if match is None:
        return None
    suffix = match.group(2)
    if suffix is None:
        return int(match.group(1)), Endianness.BIG, False
    return int(match.group(1)), _ENDIANNESS_SUFFIX[suffix], True


def make_type(ty_str: str, endianness_important: bool) -> FieldType:
    """Build a field type from its name."""
    parsed = parse_ty(ty_str)
    if parsed is not None:
        size, endianness, specified = parsed
        if not endianness_important or size <= 8 or specified:
            return Primitive(ty_str, size, endianness)
        raise PacketSpecError("endianness must be specified for types of size >= 8")
    if ty_str.startswith("Vec<"):
        return Vector(make_type(ty_str[4:-1], endianness_important))
    if ty_str.startswith("&"):
        raise PacketSpecError(f"invalid type: {ty_str}")
    return Misc(ty_str)