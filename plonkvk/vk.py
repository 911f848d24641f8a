"""Parser for the packed verifying-key byte format.

BN254 field elements and G1 points are big-endian; every length, count and
index is little-endian. The layout is, in order:

* header: the magic ``b"H2SV0003"`` and the version as u32;
* eleven u32 metadata fields (``k`` through ``num_perm_chunks``);
* ``omega`` and ``transcript_repr``, 32 bytes each;
* the advice, fixed and instance queries as ``(column u32, rotation i32)``;
* gates, each a list of length-prefixed polynomial bytecodes;
* fixed and permutation commitments (64-byte G1 points);
* the type tags and query indices of the permuted columns;
* lookup and shuffle arguments, each two equally long lists of bytecodes;
* an optional multi-phase appendix: ``num_phases`` as u8, then one phase
  byte per advice column and one per challenge.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .encode import G1, G1_SIZE, SCALAR_SIZE, InvalidVkEncoding, fr_from_bytes_be

VK_MAGIC = b"H2SV0003"
VK_VERSION = 3

_MAX_COLUMN_TYPE = 2


@dataclass
class LookupArgument:
    """Input and table expressions of one lookup, as bytecode."""

    input_expressions: list[bytes] = field(default_factory=list)
    table_expressions: list[bytes] = field(default_factory=list)


@dataclass
class ShuffleArgument:
    """Input and shuffle expressions of one shuffle, as bytecode."""

    input_expressions: list[bytes] = field(default_factory=list)
    shuffle_expressions: list[bytes] = field(default_factory=list)


@dataclass
class PlonkProtocol:
    """Everything the verifier needs to know about a circuit."""

    k: int
    omega: int
    num_instance: int
    num_advice: int
    num_fixed: int
    cs_degree: int
    num_advice_queries: int
    num_fixed_queries: int
    num_instance_queries: int
    num_challenges: int
    blinding_factors: int
    num_perm_chunks: int
    fixed_commitments: list[G1]
    permutation_commitments: list[G1]
    advice_queries: list[tuple[int, int]]
    fixed_queries: list[tuple[int, int]]
    instance_queries: list[tuple[int, int]]
    gates: list[list[bytes]]
    permuted_columns: list[tuple[int, int]]
    lookups: list[LookupArgument]
    shuffles: list[ShuffleArgument]
    num_phases: int
    advice_column_phase: list[int]
    challenge_phase: list[int]
    transcript_repr: bytes


class _Reader:
    """Bounds-checked cursor over a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def at_end(self) -> bool:
        return self._pos == len(self._data)

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if size < 0 or end > len(self._data):
            raise InvalidVkEncoding(
                f"need {size} bytes at offset {self._pos}, have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def i32(self) -> int:
        return struct.unpack("<i", self.take(4))[0]

    def queries(self, count: int) -> list[tuple[int, int]]:
        return [(self.u32(), self.i32()) for _ in range(count)]

    def bytecode(self) -> bytes:
        return self.take(self.u32())

    def bytecodes(self) -> list[bytes]:
        return [self.bytecode() for _ in range(self.u32())]

    def points(self) -> list[G1]:
        return [G1(self.take(G1_SIZE)) for _ in range(self.u32())]


def _read_pair(r: _Reader, what: str) -> tuple[list[bytes], list[bytes]]:
    inputs = r.bytecodes()
    count = r.u32()
    if count != len(inputs):
        raise InvalidVkEncoding(
            f"{what} has {len(inputs)} input expressions but {count} paired ones"
        )
    return inputs, [r.bytecode() for _ in range(count)]


def _read_phases(r: _Reader, num_advice: int, num_challenges: int) -> tuple[int, list[int], list[int]]:
    if r.at_end:
        return 1, [0] * num_advice, [0] * num_challenges
    if num_advice == 0 and num_challenges == 0:
        raise InvalidVkEncoding("phase appendix present without columns or challenges")
    num_phases = r.u8()
    if num_phases < 2:
        raise InvalidVkEncoding("phase appendix must declare at least two phases")

    def phase() -> int:
        value = r.u8()
        if value >= num_phases:
            raise InvalidVkEncoding(f"phase {value} out of range (num_phases={num_phases})")
        return value

    advice_phase = [phase() for _ in range(num_advice)]
    challenge_phase = [phase() for _ in range(num_challenges)]
    if not any(advice_phase) and not any(challenge_phase):
        raise InvalidVkEncoding("phase appendix describes a single-phase circuit")
    return num_phases, advice_phase, challenge_phase


def parse_vk(data: bytes) -> PlonkProtocol:
    """Parse a packed verifying key, raising InvalidVkEncoding on any defect."""
    r = _Reader(data)

    if r.take(len(VK_MAGIC)) != VK_MAGIC:
        raise InvalidVkEncoding("bad magic")
    if r.u32() != VK_VERSION:
        raise InvalidVkEncoding("unsupported version")

    k = r.u32()
    num_instance = r.u32()
    num_advice = r.u32()
    num_fixed = r.u32()
    cs_degree = r.u32()
    num_advice_queries = r.u32()
    num_fixed_queries = r.u32()
    num_instance_queries = r.u32()
    num_challenges = r.u32()
    blinding_factors = r.u32()
    num_perm_chunks = r.u32()

    omega = fr_from_bytes_be(r.take(SCALAR_SIZE))
    transcript_repr = r.take(SCALAR_SIZE)

    advice_queries = r.queries(num_advice_queries)
    fixed_queries = r.queries(num_fixed_queries)
    instance_queries = r.queries(num_instance_queries)

    gates = [r.bytecodes() for _ in range(r.u32())]

    fixed_commitments = r.points()
    permutation_commitments = r.points()

    n_perm_columns = r.u32()
    if n_perm_columns != len(permutation_commitments):
        raise InvalidVkEncoding("permuted column count differs from permutation commitments")
    permuted_columns = []
    for _ in range(n_perm_columns):
        col_type = r.u8()
        if col_type > _MAX_COLUMN_TYPE:
            raise InvalidVkEncoding(f"unknown column type {col_type}")
        permuted_columns.append((col_type, r.u32()))

    lookups = [LookupArgument(*_read_pair(r, "lookup")) for _ in range(r.u32())]
    shuffles = [ShuffleArgument(*_read_pair(r, "shuffle")) for _ in range(r.u32())]

    num_phases, advice_column_phase, challenge_phase = _read_phases(
        r, num_advice, num_challenges
    )

    if not r.at_end:
        raise InvalidVkEncoding("trailing bytes after verifying key")

    return PlonkProtocol(
        k=k,
        omega=omega,
        num_instance=num_instance,
        num_advice=num_advice,
        num_fixed=num_fixed,
        cs_degree=cs_degree,
        num_advice_queries=num_advice_queries,
        num_fixed_queries=num_fixed_queries,
        num_instance_queries=num_instance_queries,
        num_challenges=num_challenges,
        blinding_factors=blinding_factors,
        num_perm_chunks=num_perm_chunks,
        fixed_commitments=fixed_commitments,
        permutation_commitments=permutation_commitments,
        advice_queries=advice_queries,
        fixed_queries=fixed_queries,
        instance_queries=instance_queries,
        gates=gates,
        permuted_columns=permuted_columns,
        lookups=lookups,
        shuffles=shuffles,
        num_phases=num_phases,
        advice_column_phase=advice_column_phase,
        challenge_phase=challenge_phase,
        transcript_repr=transcript_repr,
    )