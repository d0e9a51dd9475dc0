"""Post-state invariant checks over a transaction's staged writes.

Each check returns a violation tag or nothing; ``check_all`` collects them.
Only staged entries are inspected: committed state already passed these checks.
"""

from __future__ import annotations

from typing import List

from ..state.canonical import UINT64_MAX, UINT128_MAX
from ..state.transaction import LedgerTransaction


def check_balances_fit_u128(tx: LedgerTransaction) -> List[str]:
    return [f"balance_overflow:{i}" for i, a in sorted(tx.staged_accounts().items()) if a.balance > UINT128_MAX]


def check_nonces_fit_u64(tx: LedgerTransaction) -> List[str]:
    return [f"nonce_overflow:{i}" for i, a in sorted(tx.staged_accounts().items()) if a.nonce > UINT64_MAX]


def check_seq_nos_fit_u64(tx: LedgerTransaction) -> List[str]:
    return [f"seq_no_overflow:{a}:{b}" for (a, b), s in sorted(tx.staged_records().items()) if s > UINT64_MAX]


def check_user_count_fits_u64(tx: LedgerTransaction) -> List[str]:
    return ["user_count_overflow"] if tx.user_count > UINT64_MAX else []


def check_all(tx: LedgerTransaction) -> List[str]:
    violations: List[str] = []
    violations += check_balances_fit_u128(tx)
    violations += check_nonces_fit_u64(tx)
    violations += check_seq_nos_fit_u64(tx)
    violations += check_user_count_fits_u64(tx)
    return violations
