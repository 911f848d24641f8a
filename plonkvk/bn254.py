"""BN254 curve primitives over big-endian byte encodings, and Keccak-256.

G1 points are ``x ‖ y`` (64 bytes), G2 points ``x.c1 ‖ x.c0 ‖ y.c1 ‖ y.c0``
(128 bytes) and scalars 32 bytes; all field elements are big-endian. An
all-zero encoding stands for the point at infinity.
"""

from __future__ import annotations

from Crypto.Hash import keccak

from .encode import (
    FQ_MODULUS as _P,
    FR_MODULUS as _R,
    ProtocolError,
    fr_from_bytes_be_mod_order,
)

_G1_LEN = 64
_G2_LEN = 128
_PAIR_LEN = _G1_LEN + _G2_LEN


class _Fq:
    __slots__ = ("n",)

    def __init__(self, n: int) -> None:
        self.n = n % _P

    def __add__(self, other: _Fq) -> _Fq:
        return _Fq(self.n + other.n)

    def __sub__(self, other: _Fq) -> _Fq:
        return _Fq(self.n - other.n)

    def __neg__(self) -> _Fq:
        return _Fq(-self.n)

    def __mul__(self, other: _Fq | int) -> _Fq:
        if isinstance(other, int):
            return _Fq(self.n * other)
        return _Fq(self.n * other.n)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Fq) and self.n == other.n

    def __hash__(self) -> int:
        return hash(self.n)

    def inverse(self) -> _Fq:
        return _Fq(pow(self.n, -1, _P))

    def is_zero(self) -> bool:
        return self.n == 0


class _Fq2:
    """Element ``c0 + c1·i`` of Fq[i] / (i² + 1)."""

    __slots__ = ("c0", "c1")

    def __init__(self, c0: int, c1: int) -> None:
        self.c0 = c0 % _P
        self.c1 = c1 % _P

    def __add__(self, other: _Fq2) -> _Fq2:
        return _Fq2(self.c0 + other.c0, self.c1 + other.c1)

    def __sub__(self, other: _Fq2) -> _Fq2:
        return _Fq2(self.c0 - other.c0, self.c1 - other.c1)

    def __neg__(self) -> _Fq2:
        return _Fq2(-self.c0, -self.c1)

    def __mul__(self, other: _Fq2 | int) -> _Fq2:
        if isinstance(other, int):
            return _Fq2(self.c0 * other, self.c1 * other)
        return _Fq2(
            self.c0 * other.c0 - self.c1 * other.c1,
            self.c0 * other.c1 + self.c1 * other.c0,
        )

    def __pow__(self, exponent: int) -> _Fq2:
        result = _Fq2(1, 0)
        for bit in bin(exponent)[2:]:
            result = result * result
            if bit == "1":
                result = result * self
        return result

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Fq2) and (self.c0, self.c1) == (other.c0, other.c1)

    def __hash__(self) -> int:
        return hash((self.c0, self.c1))

    def inverse(self) -> _Fq2:
        norm_inv = pow(self.c0 * self.c0 + self.c1 * self.c1, -1, _P)
        return _Fq2(self.c0 * norm_inv, -self.c1 * norm_inv)

    def conjugate(self) -> _Fq2:
        return _Fq2(self.c0, -self.c1)

    def is_zero(self) -> bool:
        return self.c0 == 0 and self.c1 == 0


_B1 = _Fq(3)
_XI = _Fq2(9, 1)
_B2 = _Fq2(3, 0) * _XI.inverse()
_GAMMA_X = _XI ** ((_P - 1) // 3)
_GAMMA_Y = _XI ** ((_P - 1) // 2)

_ATE_LOOP_COUNT = 29793968203157093288
_ATE_BITS = tuple((_ATE_LOOP_COUNT >> i) & 1 for i in range(63, -1, -1))
_FINAL_EXPONENT = (_P**12 - 1) // _R
_F12_ONE = (1,) + (0,) * 11


# ---------------------------------------------------------------------------
# Generic affine arithmetic on short Weierstrass curves y² = x³ + b.
# Points are (x, y) tuples; None is the point at infinity.
# ---------------------------------------------------------------------------

def _double(point):
    if point is None:
        return None
    x, y = point
    if y.is_zero():
        return None
    slope = x * x * 3 * (y * 2).inverse()
    x3 = slope * slope - x * 2
    return (x3, slope * (x - x3) - y)


def _add(p1, p2):
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    x1, y1 = p1
    x2, y2 = p2
    if x1 == x2:
        return _double(p1) if y1 == y2 else None
    slope = (y2 - y1) * (x2 - x1).inverse()
    x3 = slope * slope - x1 - x2
    return (x3, slope * (x1 - x3) - y1)


def _scalar_mul(point, k: int):
    result = None
    for bit in bin(k)[2:]:
        result = _double(result)
        if bit == "1":
            result = _add(result, point)
    return result


def _on_curve(point, b) -> bool:
    x, y = point
    return y * y == x * x * x + b


# ---------------------------------------------------------------------------
# Byte encodings
# ---------------------------------------------------------------------------

def _exact(data: bytes, size: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != size:
        raise ProtocolError(f"{what} must be {size} bytes, got {len(data)}")
    return data


def _field_int(chunk: bytes, what: str) -> int:
    value = int.from_bytes(chunk, "big")
    if value >= _P:
        raise ProtocolError(f"{what} coordinate not in the base field")
    return value


def _decode_g1(data: bytes):
    data = _exact(data, _G1_LEN, "G1 point")
    if data == bytes(_G1_LEN):
        return None
    point = (_Fq(_field_int(data[:32], "G1")), _Fq(_field_int(data[32:], "G1")))
    if not _on_curve(point, _B1):
        raise ProtocolError("G1 point not on curve")
    return point


def _encode_g1(point) -> bytes:
    if point is None:
        return bytes(_G1_LEN)
    x, y = point
    return x.n.to_bytes(32, "big") + y.n.to_bytes(32, "big")


def _decode_g2(data: bytes, *, check_subgroup: bool = False):
    data = _exact(data, _G2_LEN, "G2 point")
    if data == bytes(_G2_LEN):
        return None
    x_c1, x_c0, y_c1, y_c0 = (
        _field_int(data[offset:offset + 32], "G2") for offset in range(0, _G2_LEN, 32)
    )
    point = (_Fq2(x_c0, x_c1), _Fq2(y_c0, y_c1))
    if not _on_curve(point, _B2):
        raise ProtocolError("G2 point not on curve")
    if check_subgroup and _scalar_mul(point, _R) is not None:
        raise ProtocolError("G2 point not in the prime-order subgroup")
    return point


def _encode_g2(point) -> bytes:
    if point is None:
        return bytes(_G2_LEN)
    x, y = point
    return b"".join(v.to_bytes(32, "big") for v in (x.c1, x.c0, y.c1, y.c0))


def _scalar(data: bytes) -> int:
    return fr_from_bytes_be_mod_order(_exact(data, 32, "scalar"))


# ---------------------------------------------------------------------------
# Public group operations
# ---------------------------------------------------------------------------

def g1_add(a: bytes, b: bytes) -> bytes:
    """Return the encoding of ``a + b`` for two encoded G1 points."""
    return _encode_g1(_add(_decode_g1(a), _decode_g1(b)))


def g1_mul(point: bytes, scalar: bytes) -> bytes:
    """Return the encoding of ``scalar · point``; the scalar is reduced mod r."""
    return _encode_g1(_scalar_mul(_decode_g1(point), _scalar(scalar)))


def g2_add(a: bytes, b: bytes) -> bytes:
    """Return the encoding of ``a + b`` for two encoded G2 points."""
    return _encode_g2(_add(_decode_g2(a), _decode_g2(b)))


def g2_mul(point: bytes, scalar: bytes) -> bytes:
    """Return the encoding of ``scalar · point``; the scalar is reduced mod r."""
    return _encode_g2(_scalar_mul(_decode_g2(point), _scalar(scalar)))


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the original padding, not SHA3-256)."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


# ---------------------------------------------------------------------------
# Pairing: Fq12 = Fq[w] / (w¹² - 18·w⁶ + 82), with w⁶ = 9 + i.
# ---------------------------------------------------------------------------

def _f12_mul(a, b):
    prod = [0] * 23
    for i, ai in enumerate(a):
        if ai:
            for j, bj in enumerate(b):
                prod[i + j] += ai * bj
    for k in range(22, 11, -1):
        top = prod[k]
        if top:
            prod[k - 6] += 18 * top
            prod[k - 12] -= 82 * top
    return tuple(c % _P for c in prod[:12])


def _f12_pow(base, exponent: int):
    result = _F12_ONE
    for bit in bin(exponent)[2:]:
        result = _f12_mul(result, result)
        if bit == "1":
            result = _f12_mul(base, result)
    return result


def _place(coeffs: list, value: _Fq2, shift: int) -> None:
    """Add the Fq12 image of ``value · w^shift`` into ``coeffs``."""
    coeffs[shift] = (coeffs[shift] + value.c0 - 9 * value.c1) % _P
    coeffs[shift + 6] = (coeffs[shift + 6] + value.c1) % _P


def _line(r1, r2, xp: int, yp: int):
    """Evaluate the line through twisted points r1, r2 at the G1 point (xp, yp)."""
    x1, y1 = r1
    x2, y2 = r2
    coeffs = [0] * 12
    if x1 != x2:
        slope = (y2 - y1) * (x2 - x1).inverse()
    elif y1 == y2:
        slope = x1 * x1 * 3 * (y1 * 2).inverse()
    else:
        coeffs[0] = xp
        _place(coeffs, -x1, 2)
        return tuple(coeffs)
    coeffs[0] = -yp % _P
    _place(coeffs, slope * xp, 1)
    _place(coeffs, y1 - slope * x1, 3)
    return tuple(coeffs)


def _frobenius(point):
    x, y = point
    return (x.conjugate() * _GAMMA_X, y.conjugate() * _GAMMA_Y)


def _miller_loop(q, p):
    xp, yp = p[0].n, p[1].n
    r = q
    f = _F12_ONE
    for bit in _ATE_BITS:
        f = _f12_mul(_line(r, r, xp, yp), _f12_mul(f, f))
        r = _double(r)
        if bit:
            f = _f12_mul(_line(r, q, xp, yp), f)
            r = _add(r, q)
    q1 = _frobenius(q)
    q2x, q2y = _frobenius(q1)
    neg_q2 = (q2x, -q2y)
    f = _f12_mul(_line(r, q1, xp, yp), f)
    r = _add(r, q1)
    return _f12_mul(_line(r, neg_q2, xp, yp), f)


def pairing_check(pairs: bytes) -> bool:
    """Return True iff the product of e(G1ᵢ, G2ᵢ) over 192-byte pairs is one."""
    pairs = bytes(pairs)
    if not pairs or len(pairs) % _PAIR_LEN:
        raise ProtocolError("pairing_check: input not a multiple of 192")
    f = _F12_ONE
    for offset in range(0, len(pairs), _PAIR_LEN):
        g1 = _decode_g1(pairs[offset:offset + _G1_LEN])
        g2 = _decode_g2(pairs[offset + _G1_LEN:offset + _PAIR_LEN], check_subgroup=True)
        if g1 is None or g2 is None:
            continue
        f = _f12_mul(_miller_loop(g2, g1), f)
    return _f12_pow(f, _FINAL_EXPONENT) == _F12_ONE


# ---------------------------------------------------------------------------
# Big-endian ↔ little-endian layout conversion
# ---------------------------------------------------------------------------

def swap_g1(data: bytes) -> bytes:
    """Reverse each 32-byte coordinate of a G1 encoding."""
    data = _exact(data, _G1_LEN, "G1 point")
    return data[31::-1] + data[63:31:-1]


def swap_fr(data: bytes) -> bytes:
    """Reverse a 32-byte scalar encoding."""
    return _exact(data, 32, "scalar")[::-1]


def swap_pair_chunk(chunk: bytes) -> bytes:
    """Convert one ``G1 ‖ G2`` pairing chunk between big- and little-endian.

    The G1 half is reversed per 32-byte coordinate; the G2 half per 64-byte
    Fq2 coordinate, which also swaps the positions of c0 and c1.
    """
    chunk = _exact(chunk, _PAIR_LEN, "pairing chunk")
    return swap_g1(chunk[:_G1_LEN]) + chunk[127:63:-1] + chunk[191:127:-1]