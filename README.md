# plonkvk

A library for writing and reading PLONK (BN254 / KZG) verifying keys in a
packed binary format. It also provides the Keccak-256 Fiat–Shamir transcript
and the BN254 curve operations that a verifier uses with such keys.

## Modules

- **`plonkvk.encode`**: the field moduli `FR_MODULUS` and `FQ_MODULUS`, and
  helpers that encode field elements and points:
  - `fr_to_bytes_be` and `fq_to_bytes_be` reduce a field element and write it
    as 32 big-endian bytes.
  - `g1_affine_to_bytes_be` writes an `(x, y)` point as the 64 bytes `x ‖ y`.
    It writes `None`, the identity, as 64 zero bytes.
  - `fr_from_bytes_be` decodes a scalar strictly. A value that is not below
    the modulus raises `PublicInputOutOfRange`.
  - `fr_from_bytes_be_mod_order` decodes a scalar and reduces it modulo the
    scalar-field order.
  - `G1` is a frozen 64-byte point encoding with an `is_identity` property.
  - The shared error classes all derive from `VerifierError`: `ProtocolError`,
    `SyscallFailedError`, `InvalidProofEncoding`, `InvalidVkEncoding` and
    `PublicInputOutOfRange`.
- **`plonkvk.bn254`**: BN254 arithmetic in pure Python, working on big-endian
  byte encodings.
  - `g1_add` and `g1_mul` operate on G1 points.
  - `g2_add` and `g2_mul` operate on G2 points laid out as
    `x.c1 ‖ x.c0 ‖ y.c1 ‖ y.c0`.
  - `pairing_check` takes a sequence of 192-byte `G1 ‖ G2` pairs and returns
    `True` when the product of their pairings is one.
  - `keccak256` computes Keccak-256 with the original padding, which differs
    from SHA3-256.
  - `swap_g1`, `swap_fr` and `swap_pair_chunk` convert encodings between
    big-endian and little-endian.
  - Malformed input raises `ProtocolError`. This covers a wrong length, a
    coordinate outside the field, a point that is not on the curve, and a G2
    point outside the subgroup in a pairing.
- **`plonkvk.transcript`**: `Keccak256Transcript`, seeded with a 32-byte key
  digest. Use it as follows:
  - `absorb_scalar` and `absorb_g1` add data to the transcript.
  - `read_scalar(proof, cursor)` and `read_g1(proof, cursor)` read a value from
    a proof byte string and absorb it. Each returns `(value, new_cursor)`. A
    truncated proof raises `InvalidProofEncoding`.
  - `squeeze_challenge` returns a scalar. When the state is exactly 32 bytes,
    for example right after a previous squeeze, it first appends a `0x01`
    byte for domain separation.
  - The `state` property returns the bytes currently held.
- **`plonkvk.expression`**: an expression tree made of `Constant`, `Selector`,
  `Advice`, `Fixed`, `Instance`, `Challenge`, `Negated`, `Sum`, `Product` and
  `Scaled`.
  - `encode_expression(expr, cs)` writes the tree as post-order RPN bytecode.
    The bytecode uses the `Opcode` values, and each query is resolved against
    the query lists of `cs`.
  - A selector in the tree raises `SelectorPresentError`.
  - A query that is not in the lists, or a challenge index above 255, raises
    `UnresolvedQueryIndexError`.
- **`plonkvk.vk`**: `parse_vk` reads a packed key into a `PlonkProtocol`.
  - Lookups come back as `LookupArgument` entries and shuffles as
    `ShuffleArgument` entries.
  - Any defect raises `InvalidVkEncoding`. Defects include a bad magic or
    version, truncation, trailing bytes, mismatched counts, an unknown column
    type and an invalid phase appendix.
  - The module also defines `VK_MAGIC` and `VK_VERSION`.
- **`plonkvk.compile`**: builds packed keys.
  - `ConstraintSystem` describes the circuit. It holds the column counts,
    degree, query lists, `Gate`, `Lookup` and `Shuffle` entries, the
    permutation `Column`s tagged with a `ColumnType`, and the phase tables.
    `ConstraintSystem.num_phases()` returns the number of phases.
  - `VerifyingKey` adds the fixed and permutation commitments and the
    transcript digest.
  - `compile_vk(k, vk)` writes the packed format.
  - `compute_omega(k)` returns a primitive 2^k-th root of unity in Fr, for
    `0 <= k <= 28`. Other values of `k` raise `ValueError`.
  - Encoding failures raise `CompileError`. A permuted column with no query at
    rotation 0 raises `PermutedColumnQueryMissing`.

## Example

```python
from plonkvk.compile import (
    Column, ColumnType, ConstraintSystem, Gate, VerifyingKey, compile_vk, compute_omega,
)
from plonkvk.expression import Advice, Fixed, Product
from plonkvk.transcript import Keccak256Transcript
from plonkvk.vk import parse_vk

cs = ConstraintSystem(
    num_advice_columns=1,
    num_fixed_columns=1,
    degree=3,
    advice_queries=[(0, 0)],
    fixed_queries=[(0, 0)],
    permutation_columns=[Column(ColumnType.ADVICE, 0)],
    gates=[Gate([Product(Fixed(0), Advice(0))])],
)
vk = VerifyingKey(cs, fixed_commitments=[(1, 2)], permutation_commitments=[(1, 2)])

blob = compile_vk(4, vk)
protocol = parse_vk(blob)
assert protocol.omega == compute_omega(4)

transcript = Keccak256Transcript(protocol.transcript_repr)
proof = bytes(protocol.fixed_commitments[0])
point, cursor = transcript.read_g1(proof, 0)
challenge = transcript.squeeze_challenge()
```

## Binary format

A key begins with the magic `H2SV0003` and the version `3`, written as a u32.
Field elements and curve points are big-endian. Counts, lengths, column
indices and rotations are little-endian `u32` or `i32`.

The sections follow the header in this order:

1. eleven metadata fields
2. `omega` and `transcript_repr`
3. the advice, fixed and instance query lists
4. the gate bytecode
5. the fixed and permutation commitments
6. the type tags and query indices of the permuted columns
7. the lookup and shuffle arguments
8. the phase appendix

The phase appendix is written only for circuits that use more than one
phase. It holds `num_phases` as one byte, then one byte for each advice
column and one byte for each challenge.

## What the package does not do

- It does not verify proofs.
- It does not compute commitments, run keygen, or derive the transcript
  digest. `VerifyingKey` takes these as given.
- It has no command-line tool.
- The curve and pairing arithmetic is plain Python and is slow.

## Running the tests

```
pip install -e ".[test]"
pytest
```