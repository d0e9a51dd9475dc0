"""
BLS primitive adapter (BN254, py_ecc)
"""

from .bls import (
    MessagePoint,
    PublicKey,
    Signature,
    aggregate_signatures,
    hash_to_point,
    keygen,
    public_key_from_secret,
    sign,
    verify_multiple,
    verify_single,
)

__all__ = [
    "MessagePoint",
    "PublicKey",
    "Signature",
    "aggregate_signatures",
    "hash_to_point",
    "keygen",
    "public_key_from_secret",
    "sign",
    "verify_multiple",
    "verify_single",
]
