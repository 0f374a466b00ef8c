"""Plain record types holding the decoded field values of a packet."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import make_dataclass
from typing import Any, Iterable, Union

from wirepack.spec import PacketSpec

__all__ = ["make_record_type", "debug_string"]


def make_record_type(spec: PacketSpec) -> type:
    """Build a dataclass named after the packet, with one attribute per field."""
    record = make_dataclass(spec.base_name, [field.name for field in spec.fields])
    record.__doc__ = f"Field values of a {spec.base_name} packet."
    return record


def debug_string(name: str, values: Union[Mapping[str, Any], Iterable[tuple[str, Any]]]) -> str:
    """Render ``name { field : value, ... }`` from field names and values."""
    items = values.items() if isinstance(values, Mapping) else values
    body = "".join(f"{field} : {value!r}, " for field, value in items)
    return f"{name} {{ {body} }}"