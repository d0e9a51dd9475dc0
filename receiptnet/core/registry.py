"""
User registration with proof of possession.

The proof is a BLS signature by the claimed key over the user's own address.
Without it an attacker could publish `pk_a = s*G2 - pk_b` for a victim key
`pk_b`; aggregate verification only checks a sum of keys, so the pair would
let them forge receipts the victim never signed. Signing the address requires
the discrete log of `pk_a` itself, which a pure offset key does not have.
"""

from __future__ import annotations

from ..crypto.bls import verify_single
from ..state.transaction import LedgerTransaction
from .messages import hash_message, registration_message
from .types import Env, Register, Rejection, StepResult, UserRegistered, accept, reject


def register(tx: LedgerTransaction, env: Env, call: Register) -> StepResult:
    entry = tx.register_user(call.address, call.public_key)

    message = hash_message(env.domain, registration_message(entry.address))
    valid, success = verify_single(call.proof, entry.public_key, message)
    if not success:
        return reject(Rejection.INVALID_PROOF_OF_POSSESSION, "malformed key or proof")
    if not valid:
        return reject(Rejection.INVALID_PROOF_OF_POSSESSION)

    return accept(UserRegistered(index=entry.index, address=entry.address))
