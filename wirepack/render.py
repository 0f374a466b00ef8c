"""Textual rendering of field read and write operations."""

from __future__ import annotations

from typing import Sequence

from wirepack.fieldtypes import parse_ty
from wirepack.mutators import SetOperation
from wirepack.ops import Endianness, GetOperation

__all__ = ["accessor_op_str", "sop_strings", "accessor_comment"]

_ENDIAN_NAMES = {
    Endianness.BIG: "big-endian",
    Endianness.LITTLE: "little-endian",
    Endianness.HOST: "host-endian",
}


def accessor_op_str(name: str, ty: str, operations: Sequence[GetOperation]) -> str:
    """Render the expression reading a field of type ``ty`` from buffer ``name``."""
    if not operations:
        raise ValueError("at least one operation is required")
    if len(operations) == 1:
        return str(operations[0]).replace("{}", f"({name}[co] as {ty})")
    lines = [
        f"let b{idx} = ({str(op).replace('{}', f'({name}[co + {idx}] as {ty})')}) as {ty};\n"
        for idx, op in enumerate(operations)
    ]
    combined = " | ".join(f"b{idx}" for idx in range(len(operations)))
    return "".join(lines) + f"\n{combined}\n"


def sop_strings(operations: Sequence[SetOperation]) -> str:
    """Render the statements writing ``val`` into consecutive packet bytes."""
    return "".join(
        str(sop).replace("{packet}", f"_self.packet[co + {idx}]").replace("{val}", "val")
        + ";\n"
        for idx, sop in enumerate(operations)
    )


def accessor_comment(name: str, ty: str, mutator: bool) -> str:
    """Documentation line for the getter (or setter when ``mutator``) of a field."""
    get_or_set = "Set" if mutator else "Get"
    parsed = parse_ty(ty)
    if parsed is not None:
        _, endianness, specified = parsed
        if specified:
            return_or_want = "mutator wants" if mutator else "accessor returns"
            return (
                f"/// {get_or_set} the {name} field. This field is always stored "
                f"{_ENDIAN_NAMES[endianness]}\n"
                f"/// within the struct, but this {return_or_want} host order."
            )
    return f"/// {get_or_set} the {name} field."