"""Arithmetic length expressions used by the ``length`` field attribute."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union

from wirepack.fieldtypes import PacketSpecError

__all__ = ["LengthExpr", "parse_length_expr"]

_ERROR_MSG = (
    "Only field names, constants, integers, basic arithmetic expressions "
    '(+ - * / %) and parentheses are allowed in the "length" attribute'
)
_SELF_REFERENCE_MSG = "Field name must be a member of the struct and not the field itself"

_NUMBER_RE = re.compile(r"\d\w*(?:\.\w*)?")
_IDENT_RE = re.compile(r"[A-Za-z_]\w*")
_INT_RE = re.compile(
    r"(?P<digits>0x[0-9a-fA-F_]+|0o[0-7_]+|0b[01_]+|[0-9][0-9_]*)"
    r"(?:[ui](?:8|16|32|64|128|size))?"
)
_OPERATORS = "+-*/%"
_BINARY_LEVELS = ("+-", "*/%")


def _int_value(text: str) -> Optional[int]:
    match = _INT_RE.fullmatch(text)
    if match is None:
        return None
    digits = match.group("digits").replace("_", "")
    bases = {"0x": 16, "0o": 8, "0b": 2}
    base = bases.get(digits[:2], 10)
    if base != 10:
        digits = digits[2:]
    try:
        return int(digits, base)
    except ValueError:
        return None


@dataclass(frozen=True)
class _Number:
    value: Optional[int]


@dataclass(frozen=True)
class _FieldRef:
    name: str


@dataclass(frozen=True)
class _Name:
    name: str


@dataclass(frozen=True)
class _BinOp:
    op: str
    left: "_Node"
    right: "_Node"


_Node = Union[_Number, _FieldRef, _Name, _BinOp]


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens = []
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char.isspace():
            pos += 1
            continue
        if char.isdigit():
            match = _NUMBER_RE.match(text, pos)
            tokens.append(("number", match.group()))
            pos = match.end()
        elif char.isalpha() or char == "_":
            match = _IDENT_RE.match(text, pos)
            tokens.append(("ident", match.group()))
            pos = match.end()
        elif char in _OPERATORS or char in "()":
            tokens.append((char, char))
            pos += 1
        else:
            raise PacketSpecError(_ERROR_MSG)
    return tokens


def _check_delimiters(tokens: list[tuple[str, str]]) -> None:
    depth = 0
    for kind, _ in tokens:
        if kind == "(":
            depth += 1
        elif kind == ")":
            if depth == 0:
                raise PacketSpecError("unexpected closing delimiter: `)`")
            depth -= 1
    if depth:
        raise PacketSpecError("this file contains an unclosed delimiter")


class _Parser:
    def __init__(self, tokens: list[tuple[str, str]], field_names: frozenset[str]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._field_names = field_names

    def parse(self) -> _Node:
        node = self._binary(0)
        if self._pos != len(self._tokens):
            raise PacketSpecError(
                f"unexpected token in length expression: {self._tokens[self._pos][1]!r}"
            )
        return node

    def _peek(self) -> Optional[str]:
        return self._tokens[self._pos][0] if self._pos < len(self._tokens) else None

    def _binary(self, level: int) -> _Node:
        if level == len(_BINARY_LEVELS):
            return self._atom()
        node = self._binary(level + 1)
        while (kind := self._peek()) is not None and kind in _BINARY_LEVELS[level]:
            self._pos += 1
            node = _BinOp(kind, node, self._binary(level + 1))
        return node

    def _atom(self) -> _Node:
        if self._pos >= len(self._tokens):
            raise PacketSpecError("unexpected end of length expression")
        kind, text = self._tokens[self._pos]
        self._pos += 1
        if kind == "number":
            return _Number(_int_value(text))
        if kind == "ident":
            if text in self._field_names and any(c.islower() for c in text):
                return _FieldRef(text)
            return _Name(text)
        if kind == "(":
            node = self._binary(0)
            if self._peek() != ")":
                raise PacketSpecError("this file contains an unclosed delimiter")
            self._pos += 1
            return node
        raise PacketSpecError(f"unexpected token in length expression: {text!r}")


def _validate(tokens: list[tuple[str, str]], field_names: frozenset[str]) -> None:
    """Check literals and names level by level, in token order."""

    def close(scope: list[bool]) -> None:
        needs_constant, has_constant = scope
        if needs_constant and not has_constant:
            raise PacketSpecError(_SELF_REFERENCE_MSG)

    scopes = [[False, False]]
    for kind, text in tokens:
        if kind == "(":
            scopes.append([False, False])
        elif kind == ")":
            close(scopes.pop())
        elif kind == "number":
            if _int_value(text) is None:
                raise PacketSpecError(_ERROR_MSG)
        elif kind == "ident":
            if any(c.islower() for c in text):
                if text not in field_names:
                    scopes[-1][0] = True
            else:
                scopes[-1][1] = True
    close(scopes.pop())


def _collect(node: _Node, kind: type) -> list[str]:
    if isinstance(node, kind):
        return [node.name]
    if isinstance(node, _BinOp):
        return _collect(node.left, kind) + _collect(node.right, kind)
    return []


@dataclass(frozen=True)
class LengthExpr:
    """A parsed length expression over other fields and named constants."""

    text: str
    _root: _Node = field(repr=False, compare=False)

    @property
    def fields(self) -> tuple[str, ...]:
        """Names of the fields the expression refers to, in order of first use."""
        return tuple(dict.fromkeys(_collect(self._root, _FieldRef)))

    @property
    def constants(self) -> tuple[str, ...]:
        """Names resolved from the constants mapping, in order of first use."""
        return tuple(dict.fromkeys(_collect(self._root, _Name)))

    def evaluate(
        self, values: Mapping[str, int], constants: Optional[Mapping[str, int]] = None
    ) -> int:
        """Compute the length in bytes from field values and constants."""
        return self._eval(self._root, values, constants or {})

    def _eval(self, node: _Node, values: Mapping[str, int], constants: Mapping[str, int]) -> int:
        if isinstance(node, _Number):
            return node.value
        if isinstance(node, _FieldRef):
            try:
                return int(values[node.name])
            except KeyError:
                raise KeyError(f"no value for field {node.name!r}") from None
        if isinstance(node, _Name):
            try:
                return int(constants[node.name])
            except KeyError:
                raise KeyError(f"no value for constant {node.name!r}") from None
        left = self._eval(node.left, values, constants)
        right = self._eval(node.right, values, constants)
        if node.op == "+":
            return left + right
        if node.op == "-":
            if right > left:
                raise ValueError(f"length expression underflow in {self.text!r}")
            return left - right
        if node.op == "*":
            return left * right
        if node.op == "/":
            return left // right
        return left % right

    def __str__(self) -> str:
        return self.text


def parse_length_expr(text: str, field_names: Iterable[str]) -> LengthExpr:
    """Parse ``text``, where ``field_names`` are the fields it may refer to.

    Lower-case names must be fields; names without lower-case letters are
    constants. A lower-case name that is not a field is only accepted when a
    constant appears at the same parenthesis level.
    """
    names = frozenset(field_names)
    tokens = _tokenize(text)
    _check_delimiters(tokens)
    root = _Parser(tokens, names).parse()
    _validate(tokens, names)
    return LengthExpr(text, root)