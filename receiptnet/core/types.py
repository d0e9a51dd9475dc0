"""Data types for the settlement core.

All types are frozen dataclasses (immutable). Integer widths follow the wire
format: user indices are u64, amounts u128, cycle expiries u32.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Protocol, Tuple, Union

from ..state.canonical import UINT16_MAX, UINT32_MAX, UINT64_MAX, UINT128_MAX, canonical_address


@unique
class Rejection(Enum):
    """One member per failure kind; values are the public error names."""
    INVALID_PROOF_OF_POSSESSION = "InvalidProofOfPossession"
    INVALID_WITHDRAWAL_SIGNATURE = "InvalidWithdrawalSignature"
    WITHDRAWAL_NOT_READY = "WithdrawalNotReady"
    NO_PENDING_WITHDRAWAL = "NoPendingWithdrawal"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INVALID_AGGREGATE_SIGNATURE = "InvalidAggregateSignature"
    MALFORMED_CALLDATA = "MalformedCalldata"
    UNKNOWN_USER = "UnknownUser"
    UNKNOWN_SELECTOR = "UnknownSelector"
    TOKEN_TRANSFER_FAILED = "TokenTransferFailed"
    CLOCK_OUT_OF_RANGE = "ClockOutOfRange"
    INVARIANT_VIOLATION = "InvariantViolation"


class TokenLike(Protocol):
    def transfer(self, address: str, amount: int) -> bool: ...


# -- calls ---------------------------------------------------------------


def _check_uint(value: int, hi: int, name: str, *, positive: bool = False) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    lo = 1 if positive else 0
    if value < lo or value > hi:
        raise ValueError(f"{name} out of range: {value}")


def _check_words(words: Tuple[int, ...], n: int, name: str) -> Tuple[int, ...]:
    words = tuple(words)
    if len(words) != n:
        raise ValueError(f"{name} must have {n} words")
    for w in words:
        _check_uint(w, (1 << 256) - 1, name)
    return words


@dataclass(frozen=True)
class Register:
    address: str
    public_key: Tuple[int, int, int, int]
    proof: Tuple[int, int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", canonical_address(self.address))
        object.__setattr__(self, "public_key", _check_words(self.public_key, 4, "public_key"))
        object.__setattr__(self, "proof", _check_words(self.proof, 2, "proof"))


@dataclass(frozen=True)
class InitWithdraw:
    user_index: int
    amount: int
    signature: Tuple[int, int]

    def __post_init__(self) -> None:
        _check_uint(self.user_index, UINT64_MAX, "user_index")
        _check_uint(self.amount, UINT128_MAX, "amount")
        object.__setattr__(self, "signature", _check_words(self.signature, 2, "signature"))


@dataclass(frozen=True)
class ProcessWithdrawal:
    user_index: int

    def __post_init__(self) -> None:
        _check_uint(self.user_index, UINT64_MAX, "user_index")


@dataclass(frozen=True)
class ReceiptEntry:
    """One receipt as transmitted: only (b_index, amount)."""

    b_index: int
    amount: int

    def __post_init__(self) -> None:
        _check_uint(self.b_index, UINT64_MAX, "b_index")
        _check_uint(self.amount, UINT128_MAX, "amount")


@dataclass(frozen=True)
class Post:
    a_index: int
    signature: Tuple[int, int]
    receipts: Tuple[ReceiptEntry, ...]

    def __post_init__(self) -> None:
        _check_uint(self.a_index, UINT64_MAX, "a_index")
        object.__setattr__(self, "signature", _check_words(self.signature, 2, "signature"))
        receipts = tuple(self.receipts)
        if len(receipts) > UINT16_MAX:
            raise ValueError(f"too many receipts: {len(receipts)} > {UINT16_MAX}")
        object.__setattr__(self, "receipts", receipts)


Call = Union[Register, InitWithdraw, ProcessWithdrawal, Post]


@dataclass(frozen=True)
class Env:
    """Host-provided context for one call."""

    now: int
    cycle_expiry: int
    domain: bytes
    buffer_period: int
    token: Optional[TokenLike] = None

    def __post_init__(self) -> None:
        _check_uint(self.now, UINT64_MAX, "now")
        _check_uint(self.cycle_expiry, UINT32_MAX, "cycle_expiry")
        _check_uint(self.buffer_period, UINT32_MAX, "buffer_period", positive=True)
        if not isinstance(self.domain, (bytes, bytearray)) or not 1 <= len(self.domain) <= 255:
            raise ValueError("domain must be 1..255 bytes")


# -- effects -------------------------------------------------------------


@dataclass(frozen=True)
class UserRegistered:
    index: int
    address: str


@dataclass(frozen=True)
class WithdrawalInitiated:
    index: int
    amount: int
    valid_after: int


@dataclass(frozen=True)
class WithdrawalProcessed:
    index: int
    amount: int
    address: str


@dataclass(frozen=True)
class ReceiptSettled:
    a_index: int
    b_index: int
    amount_requested: int
    amount_paid: int
    seq_no: int
    slashed: bool


@dataclass(frozen=True)
class BatchSettled:
    a_index: int
    count: int
    total_paid: int
    expires_by: int


Effect = Union[UserRegistered, WithdrawalInitiated, WithdrawalProcessed, ReceiptSettled, BatchSettled]


@dataclass(frozen=True)
class StepResult:
    """Result of a single call."""

    accepted: bool
    rejection: Optional[Rejection] = None
    detail: Optional[str] = None
    effects: Tuple[Effect, ...] = ()


def reject(rejection: Rejection, detail: Optional[str] = None) -> StepResult:
    return StepResult(accepted=False, rejection=rejection, detail=detail)


def accept(*effects: Effect) -> StepResult:
    return StepResult(accepted=True, effects=tuple(effects))
