"""
Account ledger: per-user `Account{balance, nonce}` plus security deposits.

This is the in-memory stand-in for the base ledger the settlement logic runs
on top of. Settlement and withdrawals read and write it; they do not own the
lifecycle of its entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .registry import UserIndex


Amount = int  # Non-negative integer (arbitrary precision; range-checked by invariants)


@dataclass(frozen=True)
class Account:
    balance: Amount = 0
    nonce: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.balance, int) or isinstance(self.balance, bool) or self.balance < 0:
            raise ValueError(f"Balance cannot be negative: {self.balance!r}")
        if not isinstance(self.nonce, int) or isinstance(self.nonce, bool) or self.nonce < 0:
            raise ValueError(f"Nonce cannot be negative: {self.nonce!r}")


EMPTY_ACCOUNT = Account()


@dataclass
class AccountLedger:
    """
    Deterministic account + security-deposit tables keyed by user index.

    Zero entries are dropped to keep the tables sparse; `get_*` returns the
    zero value for absent keys.
    """

    _accounts: Dict[UserIndex, Account] = field(default_factory=dict)
    _deposits: Dict[UserIndex, Amount] = field(default_factory=dict)

    def get_account(self, index: UserIndex) -> Account:
        return self._accounts.get(index, EMPTY_ACCOUNT)

    def set_account(self, index: UserIndex, account: Account) -> None:
        if not isinstance(account, Account):
            raise TypeError("account must be an Account")
        if account == EMPTY_ACCOUNT:
            self._accounts.pop(index, None)
        else:
            self._accounts[index] = account

    def get_security_deposit(self, index: UserIndex) -> Amount:
        return self._deposits.get(index, 0)

    def set_security_deposit(self, index: UserIndex, amount: Amount) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"Security deposit cannot be negative: {amount!r}")
        if amount == 0:
            self._deposits.pop(index, None)
        else:
            self._deposits[index] = amount

    def credit(self, index: UserIndex, amount: Amount) -> None:
        """Funding helper for the host / tests: add to balance, keep nonce."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount!r}")
        acct = self.get_account(index)
        self.set_account(index, Account(balance=acct.balance + amount, nonce=acct.nonce))

    def deposit_security(self, index: UserIndex, amount: Amount) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"Deposit must be non-negative: {amount!r}")
        self.set_security_deposit(index, self.get_security_deposit(index) + amount)

    def get_all_accounts(self) -> Mapping[UserIndex, Account]:
        return dict(self._accounts)

    def get_all_deposits(self) -> Mapping[UserIndex, Amount]:
        return dict(self._deposits)

    def __repr__(self) -> str:
        return f"AccountLedger({len(self._accounts)} accounts, {len(self._deposits)} deposits)"
