"""Gate expressions and their RPN bytecode encoding.

An expression tree is walked in post-order and every node emits its opcode
followed by its operand:

* ``CONST`` / ``SCALE``: a 32-byte big-endian scalar,
* ``ADVICE`` / ``FIXED`` / ``INSTANCE``: the query index as u32 little-endian,
* ``CHALLENGE``: the challenge index as one byte,
* ``NEG`` / ``ADD`` / ``MUL``: no operand.

Query indices are resolved against the ``advice_queries``, ``fixed_queries``
and ``instance_queries`` lists of the constraint system, each a sequence of
``(column_index, rotation)`` pairs.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, Sequence, Tuple, Union

from .encode import fr_to_bytes_be


class Opcode(IntEnum):
    CONST = 0x00
    ADVICE = 0x01
    FIXED = 0x02
    INSTANCE = 0x03
    CHALLENGE = 0x04
    NEG = 0x05
    ADD = 0x06
    MUL = 0x07
    SCALE = 0x08


class EncodeError(Exception):
    """An expression cannot be encoded as bytecode."""


class SelectorPresentError(EncodeError):
    """A selector survived keygen; selectors must be inlined before encoding."""


class UnresolvedQueryIndexError(EncodeError):
    """A query or challenge does not resolve to an encodable index."""


@dataclass(frozen=True)
class Constant:
    value: int


@dataclass(frozen=True)
class Selector:
    index: int


@dataclass(frozen=True)
class Advice:
    column_index: int
    rotation: int = 0


@dataclass(frozen=True)
class Fixed:
    column_index: int
    rotation: int = 0


@dataclass(frozen=True)
class Instance:
    column_index: int
    rotation: int = 0


@dataclass(frozen=True)
class Challenge:
    index: int


@dataclass(frozen=True)
class Negated:
    expr: "Expression"


@dataclass(frozen=True)
class Sum:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Product:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Scaled:
    expr: "Expression"
    factor: int


Expression = Union[
    Constant, Selector, Advice, Fixed, Instance, Challenge, Negated, Sum, Product, Scaled
]

_Query = Tuple[int, int]


class _QuerySource(Protocol):
    advice_queries: Sequence[_Query]
    fixed_queries: Sequence[_Query]
    instance_queries: Sequence[_Query]


_MAX_CHALLENGE_INDEX = 0xFF


def _query_index(queries: Sequence[_Query], column: int, rotation: int) -> bytes:
    for index, (col, rot) in enumerate(queries):
        if col == column and rot == rotation:
            return struct.pack("<I", index)
    raise UnresolvedQueryIndexError(
        f"no query for column {column} at rotation {rotation}"
    )


def _walk(expr: Expression, cs: _QuerySource, out: bytearray) -> None:
    match expr:
        case Constant(value):
            out.append(Opcode.CONST)
            out += fr_to_bytes_be(value)
        case Selector():
            raise SelectorPresentError("selector present in expression")
        case Fixed(column, rotation):
            index = _query_index(cs.fixed_queries, column, rotation)
            out.append(Opcode.FIXED)
            out += index
        case Advice(column, rotation):
            index = _query_index(cs.advice_queries, column, rotation)
            out.append(Opcode.ADVICE)
            out += index
        case Instance(column, rotation):
            index = _query_index(cs.instance_queries, column, rotation)
            out.append(Opcode.INSTANCE)
            out += index
        case Challenge(index):
            if not 0 <= index <= _MAX_CHALLENGE_INDEX:
                raise UnresolvedQueryIndexError(
                    f"challenge index {index} does not fit in one byte"
                )
            out.append(Opcode.CHALLENGE)
            out.append(index)
        case Negated(inner):
            _walk(inner, cs, out)
            out.append(Opcode.NEG)
        case Sum(left, right):
            _walk(left, cs, out)
            _walk(right, cs, out)
            out.append(Opcode.ADD)
        case Product(left, right):
            _walk(left, cs, out)
            _walk(right, cs, out)
            out.append(Opcode.MUL)
        case Scaled(inner, factor):
            _walk(inner, cs, out)
            out.append(Opcode.SCALE)
            out += fr_to_bytes_be(factor)
        case _:
            raise TypeError(f"not an expression: {expr!r}")


def encode_expression(expr: Expression, cs: _QuerySource) -> bytes:
    """Encode ``expr`` as RPN bytecode, resolving queries against ``cs``."""
    out = bytearray()
    _walk(expr, cs, out)
    return bytes(out)