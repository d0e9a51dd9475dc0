"""Tests for state snapshots and their commitments."""

from __future__ import annotations

import pytest

from receiptnet.integration.snapshot import SNAPSHOT_VERSION, snapshot_from_state, state_from_snapshot
from receiptnet.state.accounts import Account
from receiptnet.state.canonical import UINT128_MAX
from receiptnet.state.withdrawals import PendingWithdrawal


def test_snapshot_roundtrip_is_deterministic(state) -> None:
    state.ledger.set_account(1, Account(balance=UINT128_MAX, nonce=3))
    state.ledger.deposit_security(2, 9)
    state.records.set(1, 2, 4)
    state.withdrawals.set(3, PendingWithdrawal(amount=7, valid_after=99))

    snap1 = snapshot_from_state(state)
    state2 = state_from_snapshot(snap1.data)
    snap2 = snapshot_from_state(state2)

    assert snap1.canonical_bytes() == snap2.canonical_bytes()
    assert snap1.commitment_hex() == snap2.commitment_hex()
    assert state2.registry.get_all() == state.registry.get_all()
    assert state2.ledger.get_account(1) == Account(balance=UINT128_MAX, nonce=3)
    assert state2.records.get(1, 2) == 4


def test_big_integers_are_decimal_strings(state) -> None:
    state.ledger.set_account(1, Account(balance=UINT128_MAX, nonce=0))
    data = snapshot_from_state(state).data
    assert data["version"] == SNAPSHOT_VERSION
    assert data["accounts"] == [{"index": 1, "balance": str(UINT128_MAX), "nonce": 0}]
    assert all(isinstance(w, str) for w in data["users"][0]["public_key"])


def test_sorting_ignores_insertion_order(state) -> None:
    other = state_from_snapshot(snapshot_from_state(state).data)
    state.records.set(2, 1, 1)
    state.records.set(1, 3, 1)
    other.records.set(1, 3, 1)
    other.records.set(2, 1, 1)
    assert snapshot_from_state(state).commitment_bytes() == snapshot_from_state(other).commitment_bytes()


def test_unsupported_version_rejected(state) -> None:
    data = dict(snapshot_from_state(state).data)
    data["version"] = SNAPSHOT_VERSION + 1
    with pytest.raises(ValueError):
        state_from_snapshot(data)
