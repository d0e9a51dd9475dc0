"""Tests for client-side key generation, signing and aggregation."""

from __future__ import annotations

from receiptnet.agents.receipt_signer import generate_keypair, sign_receipt, verify_receipt_signature
from receiptnet.crypto import bls


RECEIPT = dict(a_index=1, b_index=2, amount=50, expires_by=86_400, seq_no=1)


def test_generated_keys_are_valid_and_deterministic() -> None:
    kp = generate_keypair(b"receipt-signer-seed-01")
    assert kp == generate_keypair(b"receipt-signer-seed-01")
    assert bls.is_valid_public_key(kp.public_key)
    assert str(kp.secret_key) not in repr(kp)


def test_receipt_signature_binds_every_field() -> None:
    kp = generate_keypair(b"receipt-signer-seed-02")
    sig = sign_receipt(kp.secret_key, **RECEIPT)
    assert verify_receipt_signature(kp.public_key, sig, **RECEIPT)
    for field, value in (("amount", 51), ("seq_no", 2), ("expires_by", 86_401)):
        assert not verify_receipt_signature(kp.public_key, sig, **{**RECEIPT, field: value})


def test_domain_separates_signatures() -> None:
    kp = generate_keypair(b"receipt-signer-seed-03")
    sig = sign_receipt(kp.secret_key, **RECEIPT, domain=b"\x01" * 32)
    assert not verify_receipt_signature(kp.public_key, sig, **RECEIPT)
    assert verify_receipt_signature(kp.public_key, sig, **RECEIPT, domain=b"\x01" * 32)
