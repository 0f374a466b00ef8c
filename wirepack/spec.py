"""Validated packet descriptions built from field declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Union

from wirepack.fieldtypes import FieldType, Misc, PacketSpecError, Primitive, Vector, make_type
from wirepack.lengthexpr import LengthExpr, parse_length_expr

__all__ = ["FieldSpec", "Field", "PacketSpec", "make_packet"]

LengthSource = Union[LengthExpr, Callable[[Any], int]]


def _normalize(ty: str) -> str:
    return "".join(ty.split())


@dataclass(frozen=True)
class FieldSpec:
    """A field as declared: its name, type name and attributes.

    ``length`` is an arithmetic expression over other fields and constants,
    ``length_fn`` a callable given the packet view and returning a byte count,
    ``construct_with`` the primitive type names a composite value is built from.
    """

    name: Optional[str]
    ty: str
    payload: Any = False
    length: Any = None
    length_fn: Any = None
    construct_with: Optional[tuple] = None

    def __post_init__(self) -> None:
        if self.construct_with is not None and not isinstance(self.construct_with, tuple):
            object.__setattr__(self, "construct_with", tuple(self.construct_with))


@dataclass(frozen=True)
class Field:
    """A validated field.

    ``struct_item_size`` is set for vectors: the number of bytes one element of
    the record's list counts for when sizing a record.
    """

    name: str
    ty: FieldType
    is_payload: bool = False
    length: Optional[LengthSource] = None
    construct_with: Optional[tuple[FieldType, ...]] = None
    struct_item_size: Optional[int] = None

    @property
    def is_vector(self) -> bool:
        return isinstance(self.ty, Vector)


@dataclass(frozen=True)
class PacketSpec:
    """A complete, validated packet description."""

    base_name: str
    fields: tuple[Field, ...] = field(default_factory=tuple)

    def packet_name(self) -> str:
        return f"{self.base_name}Packet"

    def mutable_packet_name(self) -> str:
        return f"Mutable{self.base_name}Packet"

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def payload(self) -> Field:
        return next(f for f in self.fields if f.is_payload)


def _construct_types(items: tuple) -> tuple[FieldType, ...]:
    if not items:
        raise PacketSpecError("#[construct_with] must have at least one argument")
    types = []
    for item in items:
        if not isinstance(item, str):
            raise PacketSpecError(
                "#[construct_with] should be of the form #[construct_with(<types>)]"
            )
        types.append(make_type(_normalize(item), False))
    return tuple(types)


def _primitive_bits(types: tuple[FieldType, ...]) -> int:
    if not all(isinstance(t, Primitive) for t in types):
        raise PacketSpecError("arguments to #[construct_with] must be primitives")
    return sum(t.size for t in types)


def _check_size(ty: Primitive) -> None:
    if not 1 <= ty.size <= 64:
        raise PacketSpecError(f"unsupported field size: {ty.ty_str}")


def _make_field(decl: FieldSpec, other_names: list[str], payload_seen: bool) -> Field:
    if not isinstance(decl.payload, bool):
        raise PacketSpecError("unknown attribute: payload")
    if decl.payload and payload_seen:
        raise PacketSpecError("packet may not have multiple payloads")

    length: Optional[LengthSource] = None
    if decl.length_fn is not None:
        if not callable(decl.length_fn):
            raise PacketSpecError(
                '#[length_fn] should be used as #[length_fn = "name_of_function"]'
            )
        length = decl.length_fn
    if decl.length is not None:
        if length is not None:
            raise PacketSpecError("only one of length and length_fn may be given")
        if not isinstance(decl.length, str):
            raise PacketSpecError(
                '#[length] should be used as #[length = "field_name and/or arithmetic expression"]'
            )
        length = parse_length_expr(decl.length, other_names)

    construct_with = None
    if decl.construct_with is not None:
        construct_with = _construct_types(decl.construct_with)

    ty = make_type(_normalize(decl.ty), True)
    struct_item_size = None

    if isinstance(ty, Vector):
        if construct_with is not None:
            bits = _primitive_bits(construct_with)
            if bits % 8:
                raise PacketSpecError(
                    "types in #[construct_with] for vec must be add up to a multiple of 8 bits"
                )
            struct_item_size = bits // 8
        else:
            struct_item_size = 1
        if not decl.payload and length is None:
            raise PacketSpecError(
                'variable length field must have #[length = ""] or #[length_fn = ""] attribute'
            )
        inner = ty.inner
        if isinstance(inner, Vector):
            raise PacketSpecError("variable length fields may not contain vectors")
        if isinstance(inner, Primitive):
            _check_size(inner)
            if inner.ty_str != "u8" and inner.size % 8:
                raise PacketSpecError("unimplemented variable length field")
    elif isinstance(ty, Misc):
        if construct_with is None:
            raise PacketSpecError("non-primitive field types must specify #[construct_with]")
        _primitive_bits(construct_with)
    else:
        _check_size(ty)

    if construct_with is not None:
        for arg in construct_with:
            if isinstance(arg, Primitive):
                _check_size(arg)

    return Field(
        name=decl.name,
        ty=ty,
        is_payload=decl.payload,
        length=length,
        construct_with=construct_with,
        struct_item_size=struct_item_size,
    )


def make_packet(name: str, fields: Iterable[FieldSpec]) -> PacketSpec:
    """Validate field declarations and build a packet description."""
    decls = list(fields)
    named = [d.name for d in decls if d.name is not None]
    built = []
    payload_seen = False
    for decl in decls:
        if decl.name is None:
            raise PacketSpecError("all fields in a packet must be named")
        others = [n for n in named if n != decl.name]
        result = _make_field(decl, others, payload_seen)
        payload_seen = payload_seen or result.is_payload
        built.append(result)
    if not payload_seen:
        raise PacketSpecError("#[packet]'s must contain a payload")
    return PacketSpec(base_name=name, fields=tuple(built))