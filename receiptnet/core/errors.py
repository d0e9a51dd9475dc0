"""Exception types for the settlement core.

Used by ``step_or_raise()`` in ``engine.py`` for callers that prefer
exceptions over ``StepResult`` inspection.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from .types import Rejection


class SettlementError(Exception):
    """Base class; carries the ``Rejection`` it was raised for."""

    rejection: Rejection = Rejection.INVARIANT_VIOLATION

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        msg = self.rejection.value if not detail else f"{self.rejection.value}: {detail}"
        super().__init__(msg)


class InvalidProofOfPossession(SettlementError):
    rejection = Rejection.INVALID_PROOF_OF_POSSESSION


class InvalidWithdrawalSignature(SettlementError):
    rejection = Rejection.INVALID_WITHDRAWAL_SIGNATURE


class WithdrawalNotReady(SettlementError):
    rejection = Rejection.WITHDRAWAL_NOT_READY


class NoPendingWithdrawal(SettlementError):
    rejection = Rejection.NO_PENDING_WITHDRAWAL


class InsufficientBalance(SettlementError):
    rejection = Rejection.INSUFFICIENT_BALANCE


class InvalidAggregateSignature(SettlementError):
    rejection = Rejection.INVALID_AGGREGATE_SIGNATURE


class MalformedCalldata(SettlementError):
    rejection = Rejection.MALFORMED_CALLDATA


class UnknownUser(SettlementError):
    rejection = Rejection.UNKNOWN_USER


class UnknownSelector(SettlementError):
    rejection = Rejection.UNKNOWN_SELECTOR


class TokenTransferFailed(SettlementError):
    rejection = Rejection.TOKEN_TRANSFER_FAILED


class ClockOutOfRange(SettlementError):
    rejection = Rejection.CLOCK_OUT_OF_RANGE


class InvariantViolation(SettlementError):
    rejection = Rejection.INVARIANT_VIOLATION


ERROR_FOR_REJECTION: Dict[Rejection, Type[SettlementError]] = {
    cls.rejection: cls
    for cls in (
        InvalidProofOfPossession,
        InvalidWithdrawalSignature,
        WithdrawalNotReady,
        NoPendingWithdrawal,
        InsufficientBalance,
        InvalidAggregateSignature,
        MalformedCalldata,
        UnknownUser,
        UnknownSelector,
        TokenTransferFailed,
        ClockOutOfRange,
        InvariantViolation,
    )
}
