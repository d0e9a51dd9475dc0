"""
Batch receipt settlement (`post`).

Party `a` submits `(b_index, amount)` pairs and one aggregate signature. The
engine reconstructs every receipt message from state (expiry from the cycle
clock, seq_no = record + 1), moves balances, and gates the whole batch on a
single aggregate check over `count + 1` (message, key) pairs:

- receipt i:  H(a || b_i || amount_i || expires_by || seq_no_i)  keyed by pk(b_i)
- commitment: H(concat(b_i || amount_i || seq_no_i))              keyed by pk(a)

A payer short of funds pays what it has and forfeits its security deposit;
that is not an error. All writes are staged in the transaction and dropped by
the engine if verification fails.

Receipts naming the same `b` twice in one batch are settled in order against
the running state: each takes the next seq_no and sees the balance left by
the previous one.
"""

from __future__ import annotations

from typing import List, Tuple

from ..crypto.bls import MessagePoint, PublicKey, verify_multiple
from ..state.accounts import Account
from ..state.transaction import LedgerTransaction
from .messages import commitment_bytes, hash_message, receipt_message
from .types import (
    BatchSettled,
    Effect,
    Env,
    Post,
    ReceiptSettled,
    Rejection,
    StepResult,
    accept,
    reject,
)


def _transfer_with_slash(tx: LedgerTransaction, payer: int, payee: int, amount: int) -> Tuple[int, bool]:
    """Move up to `amount` from payer to payee; returns (paid, slashed)."""
    payer_account = tx.account(payer)
    paid = amount
    slashed = False
    if payer_account.balance < amount:
        paid = payer_account.balance
        slashed = True
        tx.slash_security_deposit(payer)
    tx.set_account(payer, Account(balance=payer_account.balance - paid, nonce=payer_account.nonce))

    payee_account = tx.account(payee)
    tx.set_account(payee, Account(balance=payee_account.balance + paid, nonce=payee_account.nonce))
    return paid, slashed


def post(tx: LedgerTransaction, env: Env, call: Post) -> StepResult:
    a_index = call.a_index
    a_entry = tx.registry_entry(a_index)
    if a_entry is None:
        return reject(Rejection.UNKNOWN_USER, f"submitter {a_index}")

    expires_by = env.cycle_expiry
    public_keys: List[PublicKey] = []
    messages: List[MessagePoint] = []
    committed: List[Tuple[int, int, int]] = []
    effects: List[Effect] = []
    total_paid = 0

    for receipt in call.receipts:
        b_index = receipt.b_index
        b_entry = tx.registry_entry(b_index)
        if b_entry is None:
            return reject(Rejection.UNKNOWN_USER, f"counterparty {b_index}")

        seq_no = tx.seq_no(a_index, b_index) + 1
        tx.set_seq_no(a_index, b_index, seq_no)

        messages.append(
            hash_message(env.domain, receipt_message(a_index, b_index, receipt.amount, expires_by, seq_no))
        )
        public_keys.append(b_entry.public_key)
        committed.append((b_index, receipt.amount, seq_no))

        paid, slashed = _transfer_with_slash(tx, b_index, a_index, receipt.amount)
        total_paid += paid
        effects.append(
            ReceiptSettled(
                a_index=a_index,
                b_index=b_index,
                amount_requested=receipt.amount,
                amount_paid=paid,
                seq_no=seq_no,
                slashed=slashed,
            )
        )

    messages.append(hash_message(env.domain, commitment_bytes(committed)))
    public_keys.append(a_entry.public_key)

    valid, success = verify_multiple(call.signature, public_keys, messages)
    if not success:
        return reject(Rejection.INVALID_AGGREGATE_SIGNATURE, "malformed signature or key")
    if not valid:
        return reject(Rejection.INVALID_AGGREGATE_SIGNATURE)

    effects.append(BatchSettled(a_index=a_index, count=len(call.receipts), total_paid=total_paid, expires_by=expires_by))
    return accept(*effects)
