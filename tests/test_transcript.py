import pytest

from plonkvk.bn254 import keccak256
from plonkvk.encode import (
    G1,
    InvalidProofEncoding,
    PublicInputOutOfRange,
    fr_from_bytes_be_mod_order,
)
from plonkvk.transcript import Keccak256Transcript

ZERO_SEED = bytes(32)

FR_MODULUS_BE = bytes([
    0x30, 0x64, 0x4E, 0x72, 0xE1, 0x31, 0xA0, 0x29,
    0xB8, 0x50, 0x45, 0xB6, 0x81, 0x81, 0x58, 0x5D,
    0x28, 0x33, 0xE8, 0x48, 0x79, 0xB9, 0x70, 0x91,
    0x43, 0xE1, 0xF5, 0x93, 0xF0, 0x00, 0x00, 0x01,
])


def test_empty_init_first_squeeze_domain_separates():
    t = Keccak256Transcript(ZERO_SEED)
    c1 = t.squeeze_challenge()
    expected = fr_from_bytes_be_mod_order(keccak256(bytes(32) + b"\x01"))
    assert c1 == expected


def test_second_squeeze_chains_with_domain_byte():
    t = Keccak256Transcript(ZERO_SEED)
    t.squeeze_challenge()
    state_after_first = t.state
    assert len(state_after_first) == 32
    c2 = t.squeeze_challenge()
    expected = fr_from_bytes_be_mod_order(keccak256(state_after_first + b"\x01"))
    assert c2 == expected


def test_absorb_between_squeezes_omits_domain_byte():
    t = Keccak256Transcript(ZERO_SEED)
    t.squeeze_challenge()
    scalar_be = bytes([0xAB]) * 32
    t.absorb_scalar(scalar_be)
    assert len(t.state) == 64
    c2 = t.squeeze_challenge()
    prev = keccak256(bytes(32) + b"\x01")
    expected = fr_from_bytes_be_mod_order(keccak256(prev + scalar_be))
    assert c2 == expected


def test_state_after_squeeze_is_digest():
    t = Keccak256Transcript(ZERO_SEED)
    t.squeeze_challenge()
    assert t.state == keccak256(bytes(32) + b"\x01")


def test_read_scalar_round_trip():
    scalar_be = bytes([0x01]) * 32
    proof = scalar_be + bytes(32)

    ta = Keccak256Transcript(ZERO_SEED)
    value, cursor = ta.read_scalar(proof, 0)
    ca = ta.squeeze_challenge()

    tb = Keccak256Transcript(ZERO_SEED)
    tb.absorb_scalar(scalar_be)
    cb = tb.squeeze_challenge()

    assert ca == cb
    assert cursor == 32
    assert value == int.from_bytes(scalar_be, "big")


def test_read_scalar_rejects_out_of_modulus():
    t = Keccak256Transcript(ZERO_SEED)
    with pytest.raises(PublicInputOutOfRange):
        t.read_scalar(FR_MODULUS_BE, 0)
    assert t.state == ZERO_SEED


def test_read_g1_round_trip():
    g1_bytes = bytearray(64)
    g1_bytes[31] = 1
    g1_bytes[63] = 2
    g1_bytes = bytes(g1_bytes)

    ta = Keccak256Transcript(ZERO_SEED)
    point, cursor = ta.read_g1(g1_bytes, 0)
    ca = ta.squeeze_challenge()

    tb = Keccak256Transcript(ZERO_SEED)
    tb.absorb_g1(point)
    cb = tb.squeeze_challenge()

    assert ca == cb
    assert cursor == 64
    assert point.data == g1_bytes


def test_read_scalar_short_buffer_errors():
    t = Keccak256Transcript(ZERO_SEED)
    with pytest.raises(InvalidProofEncoding):
        t.read_scalar(bytes(16), 0)


def test_read_g1_short_buffer_errors():
    t = Keccak256Transcript(ZERO_SEED)
    with pytest.raises(InvalidProofEncoding):
        t.read_g1(bytes(100), 40)


def test_reads_advance_through_proof():
    proof = bytes([0x02]) * 32 + G1().data + bytes([0x03]) * 32
    t = Keccak256Transcript(ZERO_SEED)
    first, cursor = t.read_scalar(proof, 0)
    point, cursor = t.read_g1(proof, cursor)
    last, cursor = t.read_scalar(proof, cursor)
    assert cursor == len(proof)
    assert point.is_identity
    assert t.state == ZERO_SEED + proof
    assert (first, last) == (
        int.from_bytes(bytes([0x02]) * 32, "big"),
        int.from_bytes(bytes([0x03]) * 32, "big"),
    )


def test_negative_cursor_rejected():
    t = Keccak256Transcript(ZERO_SEED)
    with pytest.raises(InvalidProofEncoding):
        t.read_scalar(bytes(64), -1)


def test_seed_must_be_32_bytes():
    with pytest.raises(ValueError):
        Keccak256Transcript(bytes(31))


def test_seed_changes_challenge():
    seed = bytes(31) + b"\x07"
    a = Keccak256Transcript(ZERO_SEED).squeeze_challenge()
    b = Keccak256Transcript(seed).squeeze_challenge()
    assert b == fr_from_bytes_be_mod_order(keccak256(seed + b"\x01"))
    assert a != b