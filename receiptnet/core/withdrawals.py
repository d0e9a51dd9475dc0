"""
Two-phase withdrawals: signed intent, then a permissionless finalize after
the buffer period.

Per-user state machine: NONE -> PENDING -> NONE, or PENDING -> PENDING when a
newer intent (signed over the same next nonce) overrides the old one.
"""

from __future__ import annotations

from ..crypto.bls import verify_single
from ..state.accounts import Account
from ..state.transaction import LedgerTransaction
from ..state.withdrawals import NO_WITHDRAWAL, PendingWithdrawal
from .messages import hash_message, withdrawal_message
from .types import (
    Env,
    InitWithdraw,
    ProcessWithdrawal,
    Rejection,
    StepResult,
    WithdrawalInitiated,
    WithdrawalProcessed,
    accept,
    reject,
)


def init_withdraw(tx: LedgerTransaction, env: Env, call: InitWithdraw) -> StepResult:
    entry = tx.registry_entry(call.user_index)
    if entry is None:
        return reject(Rejection.UNKNOWN_USER, f"user {call.user_index}")

    account = tx.account(call.user_index)
    message = hash_message(env.domain, withdrawal_message(account.nonce + 1, call.amount))
    valid, success = verify_single(call.signature, entry.public_key, message)
    if not (valid and success):
        return reject(Rejection.INVALID_WITHDRAWAL_SIGNATURE)

    valid_after = env.now + env.buffer_period
    tx.set_pending_withdrawal(call.user_index, PendingWithdrawal(amount=call.amount, valid_after=valid_after))
    return accept(WithdrawalInitiated(index=call.user_index, amount=call.amount, valid_after=valid_after))


def process_withdrawal(tx: LedgerTransaction, env: Env, call: ProcessWithdrawal) -> StepResult:
    entry = tx.registry_entry(call.user_index)
    if entry is None:
        return reject(Rejection.UNKNOWN_USER, f"user {call.user_index}")

    pending = tx.pending_withdrawal(call.user_index)
    if not pending.is_pending:
        return reject(Rejection.NO_PENDING_WITHDRAWAL)
    if env.now < pending.valid_after:
        return reject(Rejection.WITHDRAWAL_NOT_READY, f"valid after {pending.valid_after}, now {env.now}")

    account = tx.account(call.user_index)
    if account.balance < pending.amount:
        return reject(Rejection.INSUFFICIENT_BALANCE, f"balance {account.balance} < {pending.amount}")

    tx.set_account(call.user_index, Account(balance=account.balance - pending.amount, nonce=account.nonce + 1))
    tx.set_pending_withdrawal(call.user_index, NO_WITHDRAWAL)

    # The engine performs the token transfer for this effect as the last step.
    return accept(WithdrawalProcessed(index=call.user_index, amount=pending.amount, address=entry.address))
