"""
BLS signatures over BN254 (signatures in G1, public keys in G2).

This is the primitive layer used by the settlement core. Points cross the
boundary as plain integer tuples, in the same shape they take on the wire:

- `Signature` / `MessagePoint`: affine G1 point `(x, y)`; `(0, 0)` encodes infinity.
- `PublicKey`: affine G2 point `(x0, x1, y0, y1)` with `x = x0 + x1*i`.

Verification never raises on bad input. It returns `(valid, success)`:
`success` is False when an input is malformed (coordinate out of range, point
off-curve / outside the subgroup, length mismatch); `valid` is the pairing
check result. Callers must require both.

Hash-to-curve follows RFC 9380 shape: expand_message_xmd with keccak256 to 96
bytes, two field elements, Shallue-van de Woestijne map (Z=1), point addition.
G1 on BN254 has cofactor 1, so no clearing step is needed.
"""

from __future__ import annotations

import secrets
from typing import List, Optional, Sequence, Tuple

from Crypto.Hash import keccak
from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    G2,
    add,
    b,
    b2,
    curve_order,
    final_exponentiate,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

PublicKey = Tuple[int, int, int, int]
Signature = Tuple[int, int]
MessagePoint = Tuple[int, int]

FIELD_MODULUS: int = FQ.field_modulus
CURVE_ORDER: int = curve_order

G1_POINT_BYTES = 64
G2_POINT_BYTES = 128

_P = FIELD_MODULUS
_NEG_G2 = neg(G2)

# SvdW constants for y^2 = x^3 + 3 with Z = 1.
_SVDW_Z = 1
_SVDW_C1 = 4  # g(Z)
_SVDW_C2 = (_P - 1) // 2  # -Z / 2


def _sqrt_or_none(value: int) -> Optional[int]:
    # p = 3 mod 4
    value %= _P
    if value == 0:
        return 0
    root = pow(value, (_P + 1) // 4, _P)
    if root * root % _P != value:
        return None
    return root


def _inv0(value: int) -> int:
    return pow(value % _P, _P - 2, _P)


def _svdw_c3() -> int:
    root = _sqrt_or_none(-12 % _P)
    if root is None:
        raise RuntimeError("invalid SvdW parameters for BN254")
    return _P - root if root & 1 else root


_SVDW_C3 = _svdw_c3()  # sqrt(-g(Z) * 3 Z^2), even
_SVDW_C4 = (-16 * _inv0(3)) % _P  # -4 g(Z) / (3 Z^2)


def _keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def expand_message_xmd(domain: bytes, message: bytes, out_len: int = 96) -> bytes:
    """expand_message_xmd (RFC 9380 §5.3.1) instantiated with keccak256."""
    if not isinstance(domain, (bytes, bytearray)) or not 1 <= len(domain) <= 255:
        raise ValueError("domain must be 1..255 bytes")
    if out_len <= 0 or out_len % 32 != 0 or out_len > 255 * 32:
        raise ValueError("out_len must be a positive multiple of 32")
    dst_prime = bytes(domain) + bytes([len(domain)])
    z_pad = bytes(136)  # keccak256 rate
    b0 = _keccak256(z_pad + bytes(message) + out_len.to_bytes(2, "big") + b"\x00" + dst_prime)
    blocks = [_keccak256(b0 + b"\x01" + dst_prime)]
    for i in range(2, out_len // 32 + 1):
        mixed = bytes(x ^ y for x, y in zip(b0, blocks[-1]))
        blocks.append(_keccak256(mixed + bytes([i]) + dst_prime))
    return b"".join(blocks)


def hash_to_field(domain: bytes, message: bytes) -> Tuple[int, int]:
    uniform = expand_message_xmd(domain, message, 96)
    return int.from_bytes(uniform[:48], "big") % _P, int.from_bytes(uniform[48:], "big") % _P


def map_to_point(u: int) -> MessagePoint:
    """Shallue-van de Woestijne map of a field element onto G1."""
    if not isinstance(u, int) or isinstance(u, bool) or not 0 <= u < _P:
        raise ValueError("field element out of range")
    tv1 = u * u % _P * _SVDW_C1 % _P
    tv2 = (1 + tv1) % _P
    tv1 = (1 - tv1) % _P
    tv3 = _inv0(tv1 * tv2)
    tv4 = u * tv1 % _P * tv3 % _P * _SVDW_C3 % _P

    x1 = (_SVDW_C2 - tv4) % _P
    y = _sqrt_or_none(x1 * x1 * x1 + 3)
    x = x1
    if y is None:
        x2 = (_SVDW_C2 + tv4) % _P
        y = _sqrt_or_none(x2 * x2 * x2 + 3)
        x = x2
    if y is None:
        x3 = tv2 * tv2 % _P * tv3 % _P
        x3 = (x3 * x3 % _P * _SVDW_C4 + _SVDW_Z) % _P
        y = _sqrt_or_none(x3 * x3 * x3 + 3)
        x = x3
    if y is None:
        raise RuntimeError("SvdW map produced a non-square")
    if (u & 1) != (y & 1):
        y = (_P - y) % _P
    return x, y


def hash_to_point(domain: bytes, message: bytes) -> MessagePoint:
    """Hash `message` to a G1 point under the `domain` separation tag."""
    u0, u1 = hash_to_field(domain, message)
    point = add(_g1_from_affine(map_to_point(u0)), _g1_from_affine(map_to_point(u1)))
    return _g1_to_affine(point)


# -- point conversion ---------------------------------------------------------


def _is_infinity(pt) -> bool:
    return pt[2] == type(pt[2]).zero()


def _points_equal(p1, p2) -> bool:
    x1, y1, z1 = p1
    x2, y2, z2 = p2
    return x1 * z2 == x2 * z1 and y1 * z2 == y2 * z1


def _coeff_int(c) -> int:
    return int(getattr(c, "n", c))


def _g1_from_affine(point: Sequence[int]):
    x, y = int(point[0]), int(point[1])
    if x == 0 and y == 0:
        return (FQ.one(), FQ.one(), FQ.zero())
    return (FQ(x), FQ(y), FQ.one())


def _g1_to_affine(pt) -> MessagePoint:
    if _is_infinity(pt):
        return 0, 0
    x, y = normalize(pt)
    return _coeff_int(x), _coeff_int(y)


def _g2_from_affine(key: Sequence[int]):
    x0, x1, y0, y1 = (int(v) for v in key)
    return (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())


def _g2_to_affine(pt) -> PublicKey:
    x, y = normalize(pt)
    x0, x1 = (_coeff_int(c) for c in x.coeffs)
    y0, y1 = (_coeff_int(c) for c in y.coeffs)
    return x0, x1, y0, y1


def _in_field(values: Sequence[int]) -> bool:
    return all(isinstance(v, int) and not isinstance(v, bool) and 0 <= v < _P for v in values)


def _decode_g1(point: Sequence[int]):
    """G1 point from affine ints, or None when malformed."""
    if len(point) != 2 or not _in_field(point):
        return None
    pt = _g1_from_affine(point)
    if not is_on_curve(pt, b):
        return None
    return pt


def _decode_g2(key: Sequence[int]):
    """Non-identity G2 point in the prime-order subgroup, or None."""
    if len(key) != 4 or not _in_field(key) or not any(key):
        return None
    pt = _g2_from_affine(key)
    if not is_on_curve(pt, b2):
        return None
    if not _points_equal(multiply(pt, CURVE_ORDER - 1), neg(pt)):
        return None
    return pt


def is_valid_public_key(key: Sequence[int]) -> bool:
    return _decode_g2(key) is not None


# -- verification -------------------------------------------------------------


def verify_multiple(
    signature: Sequence[int],
    public_keys: Sequence[Sequence[int]],
    messages: Sequence[Sequence[int]],
) -> Tuple[bool, bool]:
    """
    Aggregate verification: e(sig, G2) == prod_i e(H_i, pk_i).

    Returns `(valid, success)`.
    """
    if len(public_keys) != len(messages) or not public_keys:
        return False, False
    sig_pt = _decode_g1(signature)
    if sig_pt is None:
        return False, False
    pairs = []
    for key, message in zip(public_keys, messages):
        key_pt = _decode_g2(key)
        msg_pt = _decode_g1(message)
        if key_pt is None or msg_pt is None:
            return False, False
        pairs.append((key_pt, msg_pt))

    acc = pairing(_NEG_G2, sig_pt, final_exponentiate=False)
    for key_pt, msg_pt in pairs:
        acc = acc * pairing(key_pt, msg_pt, final_exponentiate=False)
    return final_exponentiate(acc) == FQ12.one(), True


def verify_single(
    signature: Sequence[int],
    public_key: Sequence[int],
    message: Sequence[int],
) -> Tuple[bool, bool]:
    return verify_multiple(signature, [public_key], [message])


# -- signing (client side) ----------------------------------------------------


def keygen(seed: Optional[bytes] = None) -> int:
    """Secret scalar in [1, r-1]; deterministic when a seed is given."""
    if seed is None:
        return secrets.randbelow(CURVE_ORDER - 1) + 1
    if not isinstance(seed, (bytes, bytearray)) or len(seed) < 16:
        raise ValueError("seed must be at least 16 bytes")
    wide = _keccak256(b"receiptnet-keygen:0" + bytes(seed)) + _keccak256(b"receiptnet-keygen:1" + bytes(seed))
    return int.from_bytes(wide, "big") % (CURVE_ORDER - 1) + 1


def _check_secret_key(secret_key: int) -> int:
    if not isinstance(secret_key, int) or isinstance(secret_key, bool):
        raise TypeError("secret_key must be an int")
    if not 0 < secret_key < CURVE_ORDER:
        raise ValueError("secret_key out of range")
    return secret_key


def public_key_from_secret(secret_key: int) -> PublicKey:
    return _g2_to_affine(multiply(G2, _check_secret_key(secret_key)))


def sign(secret_key: int, message: Sequence[int]) -> Signature:
    """Sign an already-hashed message point."""
    msg_pt = _decode_g1(message)
    if msg_pt is None:
        raise ValueError("message is not a G1 point")
    return _g1_to_affine(multiply(msg_pt, _check_secret_key(secret_key)))


def aggregate_signatures(signatures: Sequence[Sequence[int]]) -> Signature:
    acc = _g1_from_affine((0, 0))
    for sig in signatures:
        pt = _decode_g1(sig)
        if pt is None:
            raise ValueError("signature is not a G1 point")
        acc = add(acc, pt)
    return _g1_to_affine(acc)


def aggregate_public_keys(public_keys: Sequence[Sequence[int]]) -> PublicKey:
    """Sum of G2 keys. Used by tests to build rogue-key attempts."""
    if not public_keys:
        raise ValueError("public_keys must be non-empty")
    acc = None
    for key in public_keys:
        pt = _g2_from_affine(key)
        if not is_on_curve(pt, b2):
            raise ValueError("public key is not on the G2 curve")
        acc = pt if acc is None else add(acc, pt)
    if _is_infinity(acc):
        raise ValueError("aggregate public key is the identity")
    return _g2_to_affine(acc)


def negate_public_key(public_key: Sequence[int]) -> PublicKey:
    x0, x1, y0, y1 = (int(v) for v in public_key)
    return x0, x1, (-y0) % _P, (-y1) % _P


# -- byte encodings -----------------------------------------------------------


def signature_to_bytes(signature: Sequence[int]) -> bytes:
    if len(signature) != 2 or not _in_field(signature):
        raise ValueError("signature must be two field elements")
    return b"".join(int(v).to_bytes(32, "big") for v in signature)


def signature_from_bytes(data: bytes) -> Signature:
    """Split 64 bytes into two words. No curve check; verification does that."""
    if len(data) != G1_POINT_BYTES:
        raise ValueError(f"signature must be {G1_POINT_BYTES} bytes")
    return int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big")


def public_key_to_bytes(public_key: Sequence[int]) -> bytes:
    if len(public_key) != 4 or not _in_field(public_key):
        raise ValueError("public key must be four field elements")
    return b"".join(int(v).to_bytes(32, "big") for v in public_key)


def public_key_from_bytes(data: bytes) -> PublicKey:
    if len(data) != G2_POINT_BYTES:
        raise ValueError(f"public key must be {G2_POINT_BYTES} bytes")
    words: List[int] = [int.from_bytes(data[i : i + 32], "big") for i in range(0, 128, 32)]
    return words[0], words[1], words[2], words[3]
