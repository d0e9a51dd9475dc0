"""
State management for receiptnet
"""

from .accounts import Account, AccountLedger
from .records import RecordTable
from .registry import RegistryEntry, RegistryTable
from .transaction import ChainState, LedgerTransaction
from .withdrawals import NO_WITHDRAWAL, PendingWithdrawal, WithdrawalTable

__all__ = [
    "Account",
    "AccountLedger",
    "RecordTable",
    "RegistryEntry",
    "RegistryTable",
    "ChainState",
    "LedgerTransaction",
    "NO_WITHDRAWAL",
    "PendingWithdrawal",
    "WithdrawalTable",
]
