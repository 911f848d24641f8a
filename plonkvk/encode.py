"""Byte encodings for BN254 field elements and G1 points, plus verifier errors.

Field elements are 32-byte big-endian integers. A G1 point is encoded as
``x ‖ y`` (64 bytes), with the point at infinity encoded as 64 zero bytes.
"""

from __future__ import annotations

from dataclasses import dataclass

FQ_MODULUS = 21888242871839275222246405745257275088696311157297823662689037894645226208583
"""Modulus of the BN254 base field."""

FR_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617
"""Modulus of the BN254 scalar field."""

SCALAR_SIZE = 32
G1_SIZE = 64


class VerifierError(Exception):
    """Base class for every verification failure."""


class ProtocolError(VerifierError):
    """The input violates the protocol or the byte layout of an operation."""


class SyscallFailedError(VerifierError):
    """A curve primitive rejected its input."""

    def __init__(self, which: str, code: int) -> None:
        super().__init__(f"{which} failed with code {code}")
        self.which = which
        self.code = code


class InvalidProofEncoding(VerifierError):
    """The proof byte stream is truncated or malformed."""


class InvalidVkEncoding(VerifierError):
    """The verifying-key byte stream is truncated or malformed."""


class PublicInputOutOfRange(VerifierError):
    """A scalar is not in canonical form (it is not below the Fr modulus)."""


@dataclass(frozen=True)
class G1:
    """A G1 affine point held in its 64-byte big-endian encoding."""

    data: bytes = bytes(G1_SIZE)

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) != G1_SIZE:
            raise ValueError(f"G1 encoding must be {G1_SIZE} bytes, got {len(data)}")
        object.__setattr__(self, "data", data)

    @property
    def is_identity(self) -> bool:
        return self.data == bytes(G1_SIZE)

    def __bytes__(self) -> bytes:
        return self.data


def fr_to_bytes_be(value: int) -> bytes:
    """Encode a scalar-field element as 32 canonical big-endian bytes."""
    return (value % FR_MODULUS).to_bytes(SCALAR_SIZE, "big")


def fq_to_bytes_be(value: int) -> bytes:
    """Encode a base-field element as 32 canonical big-endian bytes."""
    return (value % FQ_MODULUS).to_bytes(SCALAR_SIZE, "big")


def g1_affine_to_bytes_be(point: tuple[int, int] | None) -> bytes:
    """Encode an affine G1 point ``(x, y)`` as ``x ‖ y``; ``None`` is the identity."""
    if point is None:
        return bytes(G1_SIZE)
    x, y = point
    return fq_to_bytes_be(x) + fq_to_bytes_be(y)


def fr_from_bytes_be(data: bytes) -> int:
    """Decode 32 big-endian bytes as a canonical scalar, rejecting values >= r."""
    data = bytes(data)
    if len(data) != SCALAR_SIZE:
        raise ValueError(f"scalar encoding must be {SCALAR_SIZE} bytes, got {len(data)}")
    value = int.from_bytes(data, "big")
    if value >= FR_MODULUS:
        raise PublicInputOutOfRange("scalar is not below the Fr modulus")
    return value


def fr_from_bytes_be_mod_order(data: bytes) -> int:
    """Decode big-endian bytes of any length and reduce modulo r."""
    return int.from_bytes(bytes(data), "big") % FR_MODULUS