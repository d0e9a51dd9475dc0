"""
Key management and signing for network participants.

Every signature here is over a message built by `core.messages` and hashed
to G1 under the protocol domain, so it verifies against exactly what the
settlement core reconstructs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from ..core.messages import (
    commitment_bytes,
    hash_message,
    receipt_message,
    registration_message,
    withdrawal_message,
)
from ..crypto import bls
from ..crypto.bls import PublicKey, Signature
from ..integration.config import DEFAULT_DOMAIN


@dataclass(frozen=True)
class KeyPair:
    secret_key: int
    public_key: PublicKey

    def __repr__(self) -> str:
        # Keep the scalar out of logs and tracebacks.
        return f"KeyPair(public_key=({self.public_key[0]:#x}, ...))"


def generate_keypair(seed: Optional[bytes] = None) -> KeyPair:
    """
    Create a BLS keypair.

    Args:
        seed: Optional seed (>= 16 bytes) for deterministic keys; random otherwise.

    Returns:
        KeyPair with the G2 public key as four words.
    """
    sk = bls.keygen(seed)
    return KeyPair(secret_key=sk, public_key=bls.public_key_from_secret(sk))


def sign_registration(secret_key: int, address: str, domain: bytes = DEFAULT_DOMAIN) -> Signature:
    """Proof of possession: signature over the registering address."""
    return bls.sign(secret_key, hash_message(domain, registration_message(address)))


def sign_withdrawal(secret_key: int, next_nonce: int, amount: int, domain: bytes = DEFAULT_DOMAIN) -> Signature:
    """
    Withdrawal intent signature.

    `next_nonce` is the account nonce the host will see plus one.
    """
    return bls.sign(secret_key, hash_message(domain, withdrawal_message(next_nonce, amount)))


def sign_receipt(
    secret_key: int,
    *,
    a_index: int,
    b_index: int,
    amount: int,
    expires_by: int,
    seq_no: int,
    domain: bytes = DEFAULT_DOMAIN,
) -> Signature:
    """Payer `b` acknowledges owing `amount` to `a` as receipt number `seq_no`."""
    message = receipt_message(a_index, b_index, amount, expires_by, seq_no)
    return bls.sign(secret_key, hash_message(domain, message))


def sign_commitment(
    secret_key: int,
    entries: Iterable[Tuple[int, int, int]],
    domain: bytes = DEFAULT_DOMAIN,
) -> Signature:
    """Submitter attestation over (b_index, amount, seq_no) triples in batch order."""
    return bls.sign(secret_key, hash_message(domain, commitment_bytes(entries)))


def verify_receipt_signature(
    public_key: Sequence[int],
    signature: Sequence[int],
    *,
    a_index: int,
    b_index: int,
    amount: int,
    expires_by: int,
    seq_no: int,
    domain: bytes = DEFAULT_DOMAIN,
) -> bool:
    message = hash_message(domain, receipt_message(a_index, b_index, amount, expires_by, seq_no))
    valid, success = bls.verify_single(signature, public_key, message)
    return valid and success


def aggregate(signatures: Sequence[Sequence[int]]) -> Signature:
    return bls.aggregate_signatures(signatures)
