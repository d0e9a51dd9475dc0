"""Settlement core: registration, withdrawals and batch receipt settlement.

Operations are pure state transitions over a write-ahead transaction:
- deterministic, integer-only,
- all-or-nothing (the engine commits only accepted calls),
- fail-closed (malformed crypto inputs reject).

Public API:
- `step(state, call, env) -> StepResult`
- `step_or_raise(state, call, env) -> StepResult` (raises on rejection)
"""

from .engine import step, step_or_raise
from .errors import (
    ClockOutOfRange,
    InsufficientBalance,
    InvalidAggregateSignature,
    InvalidProofOfPossession,
    InvalidWithdrawalSignature,
    InvariantViolation,
    MalformedCalldata,
    NoPendingWithdrawal,
    SettlementError,
    TokenTransferFailed,
    UnknownSelector,
    UnknownUser,
    WithdrawalNotReady,
)
from .types import (
    BatchSettled,
    Call,
    Env,
    InitWithdraw,
    Post,
    ProcessWithdrawal,
    ReceiptEntry,
    ReceiptSettled,
    Register,
    Rejection,
    StepResult,
    UserRegistered,
    WithdrawalInitiated,
    WithdrawalProcessed,
)

__all__ = [
    "step",
    "step_or_raise",
    "BatchSettled",
    "Call",
    "Env",
    "InitWithdraw",
    "Post",
    "ProcessWithdrawal",
    "ReceiptEntry",
    "ReceiptSettled",
    "Register",
    "Rejection",
    "StepResult",
    "UserRegistered",
    "WithdrawalInitiated",
    "WithdrawalProcessed",
    "SettlementError",
    "InvalidProofOfPossession",
    "InvalidWithdrawalSignature",
    "WithdrawalNotReady",
    "NoPendingWithdrawal",
    "InsufficientBalance",
    "InvalidAggregateSignature",
    "MalformedCalldata",
    "UnknownUser",
    "UnknownSelector",
    "TokenTransferFailed",
    "ClockOutOfRange",
    "InvariantViolation",
]
