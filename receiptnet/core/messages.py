"""
Signed message construction.

All messages are packed big-endian with fixed widths and hashed to G1 under
the protocol domain tag:

- registration: address (20)
- withdrawal:   nonce u64 || amount u128
- receipt:      a u64 || b u64 || amount u128 || expires_by u32 || seq_no u64
- commitment:   concat over receipts of b u64 || amount u128 || seq_no u64
"""

from __future__ import annotations

from typing import Iterable, Tuple

from ..crypto.bls import MessagePoint, hash_to_point
from ..state.canonical import address_to_bytes, encode_uint


COMMITMENT_ENTRY_BYTES = 32


def registration_message(address: str) -> bytes:
    return address_to_bytes(address)


def withdrawal_message(nonce: int, amount: int) -> bytes:
    return encode_uint(nonce, nbytes=8, name="nonce") + encode_uint(amount, nbytes=16, name="amount")


def receipt_message(a_index: int, b_index: int, amount: int, expires_by: int, seq_no: int) -> bytes:
    return (
        encode_uint(a_index, nbytes=8, name="a_index")
        + encode_uint(b_index, nbytes=8, name="b_index")
        + encode_uint(amount, nbytes=16, name="amount")
        + encode_uint(expires_by, nbytes=4, name="expires_by")
        + encode_uint(seq_no, nbytes=8, name="seq_no")
    )


def commitment_entry(b_index: int, amount: int, seq_no: int) -> bytes:
    return (
        encode_uint(b_index, nbytes=8, name="b_index")
        + encode_uint(amount, nbytes=16, name="amount")
        + encode_uint(seq_no, nbytes=8, name="seq_no")
    )


def commitment_bytes(entries: Iterable[Tuple[int, int, int]]) -> bytes:
    """Commitment over (b_index, amount, seq_no) triples in batch order."""
    return b"".join(commitment_entry(b, amount, seq) for b, amount, seq in entries)


def hash_message(domain: bytes, message: bytes) -> MessagePoint:
    return hash_to_point(domain, message)
