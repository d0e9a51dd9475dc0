"""
Client-side interfaces for payers and payees
"""

from .receipt_signer import (
    KeyPair,
    generate_keypair,
    sign_commitment,
    sign_receipt,
    sign_registration,
    sign_withdrawal,
    verify_receipt_signature,
)
from .relayer import (
    ReceiptRelayer,
    ReceiptRequest,
    SignedReceipt,
    batch_receipts,
    create_post,
)

__all__ = [
    "KeyPair",
    "generate_keypair",
    "sign_commitment",
    "sign_receipt",
    "sign_registration",
    "sign_withdrawal",
    "verify_receipt_signature",
    "ReceiptRelayer",
    "ReceiptRequest",
    "SignedReceipt",
    "batch_receipts",
    "create_post",
]
