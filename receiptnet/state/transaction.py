"""
Chain state container and its write-ahead transaction.

Every operation runs against a `LedgerTransaction`: reads fall through to the
committed `ChainState`, writes land in a local buffer. `commit()` applies the
buffer in one go; dropping the transaction (or calling `discard()`) leaves the
committed state untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .accounts import Account, AccountLedger, Amount
from .records import PairKey, RecordTable
from .registry import PublicKeyWords, RegistryEntry, RegistryTable, UserIndex
from .withdrawals import PendingWithdrawal, WithdrawalTable


@dataclass
class ChainState:
    registry: RegistryTable = field(default_factory=RegistryTable)
    ledger: AccountLedger = field(default_factory=AccountLedger)
    records: RecordTable = field(default_factory=RecordTable)
    withdrawals: WithdrawalTable = field(default_factory=WithdrawalTable)

    def begin(self) -> "LedgerTransaction":
        return LedgerTransaction(self)


class TransactionClosedError(RuntimeError):
    pass


class LedgerTransaction:
    def __init__(self, state: ChainState) -> None:
        self._state = state
        self._new_entries: List[RegistryEntry] = []
        self._accounts: Dict[UserIndex, Account] = {}
        self._deposits: Dict[UserIndex, Amount] = {}
        self._records: Dict[PairKey, int] = {}
        self._withdrawals: Dict[UserIndex, PendingWithdrawal] = {}
        self._closed = False

    def _require_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("transaction already committed or discarded")

    # -- registry --------------------------------------------------------

    @property
    def user_count(self) -> int:
        return self._state.registry.count + len(self._new_entries)

    def registry_entry(self, index: UserIndex) -> Optional[RegistryEntry]:
        committed = self._state.registry.count
        if 0 < index <= committed:
            return self._state.registry.get(index)
        pos = index - committed - 1
        if 0 <= pos < len(self._new_entries):
            return self._new_entries[pos]
        return None

    def register_user(self, address: str, public_key: PublicKeyWords) -> RegistryEntry:
        """Allocate the next index and bind it to (address, public_key)."""
        self._require_open()
        entry = RegistryEntry(index=self.user_count + 1, address=address, public_key=public_key)
        self._new_entries.append(entry)
        return entry

    # -- accounts / deposits ---------------------------------------------

    def account(self, index: UserIndex) -> Account:
        if index in self._accounts:
            return self._accounts[index]
        return self._state.ledger.get_account(index)

    def set_account(self, index: UserIndex, account: Account) -> None:
        self._require_open()
        if not isinstance(account, Account):
            raise TypeError("account must be an Account")
        self._accounts[index] = account

    def security_deposit(self, index: UserIndex) -> Amount:
        if index in self._deposits:
            return self._deposits[index]
        return self._state.ledger.get_security_deposit(index)

    def slash_security_deposit(self, index: UserIndex) -> Amount:
        """Zero the deposit; returns the forfeited amount."""
        self._require_open()
        forfeited = self.security_deposit(index)
        self._deposits[index] = 0
        return forfeited

    # -- records ---------------------------------------------------------

    def seq_no(self, a_index: UserIndex, b_index: UserIndex) -> int:
        key = (a_index, b_index)
        if key in self._records:
            return self._records[key]
        return self._state.records.get(a_index, b_index)

    def set_seq_no(self, a_index: UserIndex, b_index: UserIndex, seq_no: int) -> None:
        self._require_open()
        if seq_no < self.seq_no(a_index, b_index):
            raise ValueError("seq_no must not decrease")
        self._records[(a_index, b_index)] = seq_no

    # -- withdrawals -----------------------------------------------------

    def pending_withdrawal(self, index: UserIndex) -> PendingWithdrawal:
        if index in self._withdrawals:
            return self._withdrawals[index]
        return self._state.withdrawals.get(index)

    def set_pending_withdrawal(self, index: UserIndex, pending: PendingWithdrawal) -> None:
        self._require_open()
        if not isinstance(pending, PendingWithdrawal):
            raise TypeError("pending must be a PendingWithdrawal")
        self._withdrawals[index] = pending

    # -- staged views (for invariant checks) -----------------------------

    def staged_accounts(self) -> Mapping[UserIndex, Account]:
        return dict(self._accounts)

    def staged_records(self) -> Mapping[PairKey, int]:
        return dict(self._records)

    def staged_entries(self) -> Tuple[RegistryEntry, ...]:
        return tuple(self._new_entries)

    # -- lifecycle -------------------------------------------------------

    def commit(self) -> None:
        self._require_open()
        self._closed = True
        state = self._state
        for entry in self._new_entries:
            state.registry.append(entry)
        for index, account in self._accounts.items():
            state.ledger.set_account(index, account)
        for index, amount in self._deposits.items():
            state.ledger.set_security_deposit(index, amount)
        for (a_index, b_index), seq_no in self._records.items():
            state.records.set(a_index, b_index, seq_no)
        for index, pending in self._withdrawals.items():
            state.withdrawals.set(index, pending)

    def discard(self) -> None:
        self._closed = True
        self._new_entries.clear()
        self._accounts.clear()
        self._deposits.clear()
        self._records.clear()
        self._withdrawals.clear()
