"""
External collaborators consumed by the host: the cycle clock and the token.

Both are small protocols so a real deployment can plug in its own; the
in-memory implementations here back the host in tests and the demo.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Protocol

from ..state.canonical import UINT32_MAX, canonical_address


class Clock(Protocol):
    def now(self) -> int: ...

    def current_cycle_expiry(self) -> int: ...


class Token(Protocol):
    def transfer(self, address: str, amount: int) -> bool: ...


class CycleClock:
    """
    Wall clock split into fixed-length settlement cycles.

    The current cycle's expiry is the first cycle boundary strictly after
    `now`, counted from `genesis_time`.
    """

    def __init__(
        self,
        *,
        cycle_length: int,
        genesis_time: int = 0,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        if not isinstance(cycle_length, int) or isinstance(cycle_length, bool) or cycle_length <= 0:
            raise ValueError("cycle_length must be a positive int")
        if not isinstance(genesis_time, int) or isinstance(genesis_time, bool) or genesis_time < 0:
            raise ValueError("genesis_time must be a non-negative int")
        self.cycle_length = cycle_length
        self.genesis_time = genesis_time
        self._time_source = time_source

    def now(self) -> int:
        return int(self._time_source())

    def current_cycle_expiry(self) -> int:
        elapsed = max(0, self.now() - self.genesis_time)
        expiry = self.genesis_time + (elapsed // self.cycle_length + 1) * self.cycle_length
        if expiry > UINT32_MAX:
            raise OverflowError(f"cycle expiry {expiry} does not fit in u32")
        return expiry


class ManualClock(CycleClock):
    """Cycle clock driven by explicit `set` / `advance` calls."""

    def __init__(self, start: int = 0, *, cycle_length: int = 86_400, genesis_time: int = 0) -> None:
        self._now = int(start)
        super().__init__(cycle_length=cycle_length, genesis_time=genesis_time, time_source=lambda: self._now)

    def set(self, now: int) -> None:
        if now < self._now:
            raise ValueError("clock must not go backwards")
        self._now = int(now)

    def advance(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        self._now += int(seconds)


@dataclass
class InMemoryToken:
    """Token held by the settlement contract; `transfer` pays out of `reserve`."""

    reserve: int = 0
    balances: Dict[str, int] = field(default_factory=dict)

    def transfer(self, address: str, amount: int) -> bool:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            return False
        if amount > self.reserve:
            return False
        addr = canonical_address(address)
        self.reserve -= amount
        self.balances[addr] = self.balances.get(addr, 0) + amount
        return True

    def receive(self, amount: int) -> None:
        """Tokens paid into the contract from outside."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"amount must be non-negative: {amount!r}")
        self.reserve += amount

    def balance_of(self, address: str) -> int:
        return self.balances.get(canonical_address(address), 0)
