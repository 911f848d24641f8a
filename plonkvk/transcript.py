"""Keccak-256 Fiat–Shamir transcript.

The state is a growing byte string. Scalars are absorbed as 32 big-endian
bytes and G1 points as their 64-byte ``x ‖ y`` encoding. A challenge is
squeezed by hashing the state with Keccak-256. If the state is exactly
32 bytes, a ``0x01`` byte is appended first for domain separation. The
digest then replaces the state and is reduced modulo the scalar-field
order.
"""

from __future__ import annotations

from .bn254 import keccak256
from .encode import (
    G1,
    G1_SIZE,
    SCALAR_SIZE,
    InvalidProofEncoding,
    fr_from_bytes_be,
    fr_from_bytes_be_mod_order,
)

_DOMAIN_SEPARATOR = b"\x01"


class Keccak256Transcript:
    """Fiat–Shamir transcript seeded with a verifying key's 32-byte digest."""

    def __init__(self, transcript_repr: bytes) -> None:
        seed = bytes(transcript_repr)
        if len(seed) != SCALAR_SIZE:
            raise ValueError(
                f"transcript seed must be {SCALAR_SIZE} bytes, got {len(seed)}"
            )
        self._state = bytearray(seed)

    @property
    def state(self) -> bytes:
        """The bytes absorbed since the last squeeze (or the last digest)."""
        return bytes(self._state)

    def absorb_scalar(self, data: bytes) -> None:
        """Absorb a 32-byte big-endian scalar encoding as is."""
        data = bytes(data)
        if len(data) != SCALAR_SIZE:
            raise ValueError(f"scalar encoding must be {SCALAR_SIZE} bytes, got {len(data)}")
        self._state += data

    def absorb_g1(self, point: G1) -> None:
        """Absorb the 64-byte ``x ‖ y`` encoding of a G1 point."""
        self._state += point.data

    def _take(self, proof: bytes, cursor: int, size: int) -> bytes:
        end = cursor + size
        if cursor < 0 or end > len(proof):
            raise InvalidProofEncoding(
                f"need {size} bytes at offset {cursor}, proof has {len(proof)}"
            )
        return bytes(proof[cursor:end])

    def read_scalar(self, proof: bytes, cursor: int) -> tuple[int, int]:
        """Read, validate and absorb a canonical scalar at ``cursor``.

        Returns the scalar and the advanced cursor.
        """
        chunk = self._take(proof, cursor, SCALAR_SIZE)
        scalar = fr_from_bytes_be(chunk)
        self.absorb_scalar(chunk)
        return scalar, cursor + SCALAR_SIZE

    def read_g1(self, proof: bytes, cursor: int) -> tuple[G1, int]:
        """Read and absorb a 64-byte G1 encoding at ``cursor``.

        No on-curve check is made here. Returns the point and the advanced
        cursor.
        """
        point = G1(self._take(proof, cursor, G1_SIZE))
        self.absorb_g1(point)
        return point, cursor + G1_SIZE

    def squeeze_challenge(self) -> int:
        """Hash the state into a challenge; the digest becomes the new state."""
        if len(self._state) == SCALAR_SIZE:
            digest = keccak256(bytes(self._state) + _DOMAIN_SEPARATOR)
        else:
            digest = keccak256(bytes(self._state))
        self._state = bytearray(digest)
        return fr_from_bytes_be_mod_order(digest)