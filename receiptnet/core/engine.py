"""Dispatch-table engine for the settlement core.

``step(state, call, env)`` is the single entry point. It:

1. Opens a write-ahead transaction over ``state``.
2. Dispatches to the operation for the call type.
3. Checks post-state invariants on the staged writes.
4. Performs token transfers owed by the accepted call (last, external).
5. Commits only if every step passed; otherwise the staged writes are dropped.

``state`` is mutated in place on acceptance and left untouched on rejection.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Type

from ..state.transaction import ChainState, LedgerTransaction
from .errors import ERROR_FOR_REJECTION, InvariantViolation
from .invariants import check_all
from .registry import register
from .settlement import post
from .types import (
    Call,
    Env,
    InitWithdraw,
    Post,
    ProcessWithdrawal,
    Register,
    Rejection,
    StepResult,
    WithdrawalProcessed,
    reject,
)
from .withdrawals import init_withdraw, process_withdrawal

OperationFn = Callable[[LedgerTransaction, Env, Any], StepResult]

_DISPATCH: Dict[Type[Any], OperationFn] = {
    Register: register,
    InitWithdraw: init_withdraw,
    ProcessWithdrawal: process_withdrawal,
    Post: post,
}


def _run_transfers(env: Env, result: StepResult) -> Optional[StepResult]:
    for effect in result.effects:
        if not isinstance(effect, WithdrawalProcessed):
            continue
        if env.token is None:
            return reject(Rejection.TOKEN_TRANSFER_FAILED, "no token configured")
        if not env.token.transfer(effect.address, effect.amount):
            return reject(Rejection.TOKEN_TRANSFER_FAILED, f"transfer of {effect.amount} to {effect.address}")
    return None


def step(state: ChainState, call: Call, env: Env) -> StepResult:
    """Execute one call against ``state``.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason.
    """
    fn = _DISPATCH.get(type(call))
    if fn is None:
        return reject(Rejection.UNKNOWN_SELECTOR, f"unsupported call type {type(call).__name__}")

    tx = state.begin()
    committed = False
    try:
        try:
            result = fn(tx, env, call)
        except (ValueError, TypeError) as exc:
            # Range checks in encoders/tables (e.g. nonce + 1 beyond u64).
            return reject(Rejection.INVARIANT_VIOLATION, str(exc))
        if not result.accepted:
            return result

        violations = check_all(tx)
        if violations:
            return reject(Rejection.INVARIANT_VIOLATION, ",".join(violations))

        failed = _run_transfers(env, result)
        if failed is not None:
            return failed

        tx.commit()
        committed = True
        return result
    finally:
        if not committed:
            tx.discard()


def step_or_raise(state: ChainState, call: Call, env: Env) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        SettlementError: the subclass matching ``result.rejection``.
    """
    result = step(state, call, env)
    if result.accepted:
        return result
    rejection = result.rejection or Rejection.INVARIANT_VIOLATION
    raise ERROR_FOR_REJECTION.get(rejection, InvariantViolation)(result.detail)
