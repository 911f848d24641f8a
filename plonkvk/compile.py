"""Compile a circuit's verifying key into the packed on-chain byte format.

The output is exactly what :func:`plonkvk.vk.parse_vk` reads: header,
metadata, ``omega`` and ``transcript_repr``, query lists, gate bytecode,
commitments, permuted-column tags, and the lookup and shuffle blocks. It
ends with the multi-phase appendix, but only for circuits that use more
than one phase.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Optional, Sequence, Tuple

from .encode import FR_MODULUS, fr_to_bytes_be, g1_affine_to_bytes_be
from .expression import EncodeError, Expression, encode_expression
from .vk import VK_MAGIC, VK_VERSION

_TWO_ADICITY = 28
_MULTIPLICATIVE_GENERATOR = 7
_ROOT_OF_UNITY = pow(_MULTIPLICATIVE_GENERATOR, (FR_MODULUS - 1) >> _TWO_ADICITY, FR_MODULUS)
_MAX_U8 = 0xFF

Point = Optional[Tuple[int, int]]
Query = Tuple[int, int]


class CompileError(Exception):
    """The verifying key cannot be compiled into the packed format."""


class PermutedColumnQueryMissing(CompileError):
    """A column with copy constraints has no query at rotation zero."""


class ColumnType(IntEnum):
    """Column kinds, valued by their tag in the packed format."""

    ADVICE = 0
    FIXED = 1
    INSTANCE = 2


@dataclass(frozen=True)
class Column:
    column_type: ColumnType
    index: int


@dataclass
class Gate:
    polynomials: list[Expression] = field(default_factory=list)


@dataclass
class Lookup:
    input_expressions: list[Expression] = field(default_factory=list)
    table_expressions: list[Expression] = field(default_factory=list)


@dataclass
class Shuffle:
    input_expressions: list[Expression] = field(default_factory=list)
    shuffle_expressions: list[Expression] = field(default_factory=list)


@dataclass
class ConstraintSystem:
    """The shape of a circuit as seen by the verifier.

    ``advice_column_phase`` defaults to phase 0 for every advice column;
    ``challenge_phase`` holds one phase per challenge.
    """

    num_instance_columns: int = 0
    num_advice_columns: int = 0
    num_fixed_columns: int = 0
    degree: int = 0
    blinding_factors: int = 0
    advice_queries: list[Query] = field(default_factory=list)
    fixed_queries: list[Query] = field(default_factory=list)
    instance_queries: list[Query] = field(default_factory=list)
    permutation_columns: list[Column] = field(default_factory=list)
    gates: list[Gate] = field(default_factory=list)
    lookups: list[Lookup] = field(default_factory=list)
    shuffles: list[Shuffle] = field(default_factory=list)
    advice_column_phase: Optional[list[int]] = None
    challenge_phase: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.advice_column_phase is None:
            self.advice_column_phase = [0] * self.num_advice_columns
        elif len(self.advice_column_phase) != self.num_advice_columns:
            raise ValueError(
                f"{len(self.advice_column_phase)} advice phases for "
                f"{self.num_advice_columns} advice columns"
            )
        for phase in (*self.advice_column_phase, *self.challenge_phase):
            if not 0 <= phase <= _MAX_U8:
                raise ValueError(f"phase {phase} does not fit in one byte")

    @property
    def num_challenges(self) -> int:
        return len(self.challenge_phase)

    def num_phases(self) -> int:
        """One more than the highest phase in use, saturating at 255."""
        highest = max((*self.advice_column_phase, *self.challenge_phase), default=0)
        return min(highest + 1, _MAX_U8)


@dataclass
class VerifyingKey:
    """A circuit's constraint system with its commitments and transcript digest."""

    cs: ConstraintSystem
    fixed_commitments: list[Point] = field(default_factory=list)
    permutation_commitments: list[Point] = field(default_factory=list)
    transcript_repr: int = 0


def compute_omega(k: int) -> int:
    """Return a primitive 2^k-th root of unity in the BN254 scalar field."""
    if not 0 <= k <= _TWO_ADICITY:
        raise ValueError(f"k = {k} exceeds Fr::S = {_TWO_ADICITY}")
    omega = _ROOT_OF_UNITY
    for _ in range(_TWO_ADICITY - k):
        omega = omega * omega % FR_MODULUS
    return omega


def _u32(value: int) -> bytes:
    return struct.pack("<I", value)


def _bytecodes(blobs: Sequence[bytes]) -> bytes:
    return _u32(len(blobs)) + b"".join(_u32(len(bc)) + bc for bc in blobs)


def _queries(queries: Iterable[Query]) -> bytes:
    return b"".join(struct.pack("<Ii", col, rot) for col, rot in queries)


def _encode_all(exprs: Iterable[Expression], cs: ConstraintSystem) -> list[bytes]:
    try:
        return [encode_expression(expr, cs) for expr in exprs]
    except EncodeError as exc:
        raise CompileError(f"gate expression encoding failed: {exc}") from exc


def _paired(first: Sequence[Expression], second: Sequence[Expression],
            cs: ConstraintSystem, what: str) -> bytes:
    if len(first) != len(second):
        raise CompileError(f"{what} has mismatched input/{what} expression counts")
    return _bytecodes(_encode_all(first, cs)) + _bytecodes(_encode_all(second, cs))


def _permuted_column(column: Column, cs: ConstraintSystem) -> bytes:
    queries = {
        ColumnType.ADVICE: cs.advice_queries,
        ColumnType.FIXED: cs.fixed_queries,
        ColumnType.INSTANCE: cs.instance_queries,
    }[column.column_type]
    for index, (col, rot) in enumerate(queries):
        if col == column.index and rot == 0:
            return bytes([column.column_type]) + _u32(index)
    raise PermutedColumnQueryMissing(
        f"permuted {column.column_type.name.lower()} column {column.index} "
        "has no query at rotation 0"
    )


def compile_vk(k: int, vk: VerifyingKey) -> bytes:
    """Compile ``vk`` for a circuit of 2^k rows into the packed byte format."""
    cs = vk.cs
    omega = compute_omega(k)
    num_phases = cs.num_phases()

    perm_columns = len(cs.permutation_columns)
    chunk_len = max(cs.degree - 2, 1)
    num_perm_chunks = -(-perm_columns // chunk_len)

    gate_blocks = b"".join(_bytecodes(_encode_all(g.polynomials, cs)) for g in cs.gates)
    lookup_blocks = b"".join(
        _paired(lk.input_expressions, lk.table_expressions, cs, "table") for lk in cs.lookups
    )
    shuffle_blocks = b"".join(
        _paired(sh.input_expressions, sh.shuffle_expressions, cs, "shuffle")
        for sh in cs.shuffles
    )
    permuted = b"".join(_permuted_column(col, cs) for col in cs.permutation_columns)

    out = bytearray(VK_MAGIC)
    out += _u32(VK_VERSION)
    for value in (
        k,
        cs.num_instance_columns,
        cs.num_advice_columns,
        cs.num_fixed_columns,
        cs.degree,
        len(cs.advice_queries),
        len(cs.fixed_queries),
        len(cs.instance_queries),
        cs.num_challenges,
        cs.blinding_factors,
        num_perm_chunks,
    ):
        out += _u32(value)
    out += fr_to_bytes_be(omega)
    out += fr_to_bytes_be(vk.transcript_repr)

    out += _queries(cs.advice_queries)
    out += _queries(cs.fixed_queries)
    out += _queries(cs.instance_queries)

    out += _u32(len(cs.gates)) + gate_blocks

    out += _u32(len(vk.fixed_commitments))
    out += b"".join(g1_affine_to_bytes_be(p) for p in vk.fixed_commitments)
    out += _u32(len(vk.permutation_commitments))
    out += b"".join(g1_affine_to_bytes_be(p) for p in vk.permutation_commitments)

    out += _u32(perm_columns) + permuted
    out += _u32(len(cs.lookups)) + lookup_blocks
    out += _u32(len(cs.shuffles)) + shuffle_blocks

    if num_phases > 1:
        out.append(num_phases)
        out += bytes(cs.advice_column_phase)
        out += bytes(cs.challenge_phase)

    return bytes(out)