import struct

import pytest

from plonkvk.compile import (
    Column,
    ColumnType,
    CompileError,
    ConstraintSystem,
    Gate,
    Lookup,
    PermutedColumnQueryMissing,
    Shuffle,
    VerifyingKey,
    compile_vk,
    compute_omega,
)
from plonkvk.encode import FR_MODULUS, G1, fr_to_bytes_be
from plonkvk.expression import (
    Advice,
    Constant,
    Fixed,
    Instance,
    Product,
    Selector,
    SelectorPresentError,
    Sum,
    UnresolvedQueryIndexError,
    encode_expression,
)
from plonkvk.vk import VK_MAGIC, parse_vk


def _pow2(x, times):
    for _ in range(times):
        x = x * x % FR_MODULUS
    return x


@pytest.mark.parametrize("k", range(1, 6))
def test_omega_2_to_k_equals_one(k):
    assert _pow2(compute_omega(k), k) == 1


def test_omega_for_k_0_is_one():
    assert compute_omega(0) == 1


@pytest.mark.parametrize("k", [1, 4, 10, 28])
def test_omega_is_primitive(k):
    assert _pow2(compute_omega(k), k - 1) == FR_MODULUS - 1


def test_omega_rejects_large_k():
    with pytest.raises(ValueError):
        compute_omega(29)


def test_empty_vk_exact_bytes():
    vk = VerifyingKey(cs=ConstraintSystem(degree=3))
    data = compile_vk(4, vk)
    expected = bytearray(VK_MAGIC)
    expected += struct.pack("<I", 3)
    expected += struct.pack("<11I", 4, 0, 0, 0, 3, 0, 0, 0, 0, 0, 0)
    expected += fr_to_bytes_be(compute_omega(4))
    expected += bytes(32)
    expected += struct.pack("<6I", 0, 0, 0, 0, 0, 0)
    assert data == bytes(expected)
    assert len(data) == 144


def _rich_vk():
    cs = ConstraintSystem(
        num_instance_columns=1,
        num_advice_columns=2,
        num_fixed_columns=1,
        degree=4,
        blinding_factors=5,
        advice_queries=[(0, 0), (1, 0), (0, 1)],
        fixed_queries=[(0, 0)],
        instance_queries=[(0, 0)],
        permutation_columns=[
            Column(ColumnType.ADVICE, 1),
            Column(ColumnType.FIXED, 0),
            Column(ColumnType.INSTANCE, 0),
        ],
        gates=[Gate([Sum(Advice(0, 1), Product(Fixed(0, 0), Constant(5)))])],
        lookups=[Lookup([Advice(1, 0)], [Fixed(0, 0)])],
        shuffles=[Shuffle([Advice(0, 0)], [Instance(0, 0)])],
    )
    vk = VerifyingKey(
        cs=cs,
        fixed_commitments=[(1, 2)],
        permutation_commitments=[(1, 2), None, (3, 4)],
        transcript_repr=0x1234,
    )
    return cs, vk


def test_round_trip_through_parser():
    cs, vk = _rich_vk()
    proto = parse_vk(compile_vk(6, vk))
    assert proto.k == 6
    assert proto.omega == compute_omega(6)
    assert proto.num_instance == 1
    assert proto.num_advice == 2
    assert proto.num_fixed == 1
    assert proto.cs_degree == 4
    assert proto.blinding_factors == 5
    assert proto.num_perm_chunks == 2
    assert proto.advice_queries == [(0, 0), (1, 0), (0, 1)]
    assert proto.fixed_queries == [(0, 0)]
    assert proto.instance_queries == [(0, 0)]
    assert proto.permuted_columns == [(0, 1), (1, 0), (2, 0)]
    assert proto.gates == [[encode_expression(cs.gates[0].polynomials[0], cs)]]
    assert proto.lookups[0].input_expressions == [bytes([1]) + struct.pack("<I", 1)]
    assert proto.lookups[0].table_expressions == [bytes([2]) + struct.pack("<I", 0)]
    assert proto.shuffles[0].shuffle_expressions == [bytes([3]) + struct.pack("<I", 0)]
    expected_gen = bytes(31) + b"\x01" + bytes(31) + b"\x02"
    assert proto.fixed_commitments == [G1(expected_gen)]
    assert proto.permutation_commitments[1] == G1(bytes(64))
    assert proto.transcript_repr == (0x1234).to_bytes(32, "big")
    assert proto.num_phases == 1
    assert proto.advice_column_phase == [0, 0]


def test_multi_phase_appendix_round_trip():
    cs = ConstraintSystem(
        num_advice_columns=2,
        degree=3,
        advice_column_phase=[0, 1],
        challenge_phase=[0],
    )
    data = compile_vk(3, VerifyingKey(cs=cs))
    assert data[-4:] == bytes([2, 0, 1, 0])
    proto = parse_vk(data)
    assert proto.num_phases == 2
    assert proto.advice_column_phase == [0, 1]
    assert proto.challenge_phase == [0]
    assert proto.num_challenges == 1


def test_num_phases_saturates():
    cs = ConstraintSystem(num_advice_columns=1, advice_column_phase=[255])
    assert cs.num_phases() == 255
    assert ConstraintSystem(num_advice_columns=3).num_phases() == 1


@pytest.mark.parametrize(
    "degree, columns, chunks",
    [(3, 2, 2), (5, 4, 2), (0, 3, 3), (5, 0, 0)],
)
def test_perm_chunk_count(degree, columns, chunks):
    cs = ConstraintSystem(
        num_advice_columns=columns,
        degree=degree,
        advice_queries=[(i, 0) for i in range(columns)],
        permutation_columns=[Column(ColumnType.ADVICE, i) for i in range(columns)],
    )
    vk = VerifyingKey(cs=cs, permutation_commitments=[(1, 2)] * columns)
    assert parse_vk(compile_vk(2, vk)).num_perm_chunks == chunks


def test_permuted_column_without_rotation_zero_query():
    cs = ConstraintSystem(
        num_advice_columns=1,
        advice_queries=[(0, 1)],
        permutation_columns=[Column(ColumnType.ADVICE, 0)],
    )
    with pytest.raises(PermutedColumnQueryMissing):
        compile_vk(2, VerifyingKey(cs=cs, permutation_commitments=[(1, 2)]))


def test_lookup_count_mismatch():
    cs = ConstraintSystem(
        num_advice_columns=1,
        advice_queries=[(0, 0)],
        lookups=[Lookup([Advice(0, 0), Advice(0, 0)], [Advice(0, 0)])],
    )
    with pytest.raises(CompileError, match="mismatched"):
        compile_vk(2, VerifyingKey(cs=cs))


def test_shuffle_count_mismatch():
    cs = ConstraintSystem(shuffles=[Shuffle([Constant(1)], [])])
    with pytest.raises(CompileError, match="mismatched"):
        compile_vk(2, VerifyingKey(cs=cs))


def test_selector_in_gate_is_rejected():
    cs = ConstraintSystem(gates=[Gate([Selector(0)])])
    with pytest.raises(CompileError) as info:
        compile_vk(2, VerifyingKey(cs=cs))
    assert isinstance(info.value.__cause__, SelectorPresentError)


def test_unresolved_query_in_gate_is_rejected():
    cs = ConstraintSystem(gates=[Gate([Advice(3, 0)])])
    with pytest.raises(CompileError) as info:
        compile_vk(2, VerifyingKey(cs=cs))
    assert isinstance(info.value.__cause__, UnresolvedQueryIndexError)


def test_advice_phase_length_must_match_columns():
    with pytest.raises(ValueError):
        ConstraintSystem(num_advice_columns=2, advice_column_phase=[0])