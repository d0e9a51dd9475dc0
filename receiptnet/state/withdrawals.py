"""
Pending withdrawals: index -> (amount, valid_after).

`valid_after == 0` is the sentinel for "no pending withdrawal".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .registry import UserIndex


@dataclass(frozen=True)
class PendingWithdrawal:
    amount: int = 0
    valid_after: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool) or self.amount < 0:
            raise ValueError(f"invalid withdrawal amount: {self.amount!r}")
        if not isinstance(self.valid_after, int) or isinstance(self.valid_after, bool) or self.valid_after < 0:
            raise ValueError(f"invalid valid_after: {self.valid_after!r}")

    @property
    def is_pending(self) -> bool:
        return self.valid_after != 0


NO_WITHDRAWAL = PendingWithdrawal()


@dataclass
class WithdrawalTable:
    _pending: Dict[UserIndex, PendingWithdrawal] = field(default_factory=dict)

    def get(self, index: UserIndex) -> PendingWithdrawal:
        return self._pending.get(index, NO_WITHDRAWAL)

    def set(self, index: UserIndex, pending: PendingWithdrawal) -> None:
        if not isinstance(pending, PendingWithdrawal):
            raise TypeError("pending must be a PendingWithdrawal")
        if pending == NO_WITHDRAWAL:
            self._pending.pop(index, None)
        else:
            self._pending[index] = pending

    def get_all(self) -> Mapping[UserIndex, PendingWithdrawal]:
        return dict(self._pending)
