"""Tests for the write-ahead ledger transaction."""

from __future__ import annotations

import pytest

from receiptnet.state.accounts import Account
from receiptnet.state.transaction import ChainState, TransactionClosedError
from receiptnet.state.withdrawals import PendingWithdrawal


ADDR1 = "0x" + "01" * 20
ADDR2 = "0x" + "02" * 20


def test_reads_fall_through_and_writes_are_staged() -> None:
    state = ChainState()
    state.ledger.credit(1, 100)

    tx = state.begin()
    assert tx.account(1).balance == 100
    tx.set_account(1, Account(balance=40, nonce=1))
    tx.set_seq_no(1, 2, 1)
    tx.set_pending_withdrawal(1, PendingWithdrawal(amount=5, valid_after=10))

    assert tx.account(1) == Account(balance=40, nonce=1)
    assert state.ledger.get_account(1).balance == 100
    assert state.records.get(1, 2) == 0
    assert not state.withdrawals.get(1).is_pending

    tx.commit()
    assert state.ledger.get_account(1) == Account(balance=40, nonce=1)
    assert state.records.get(1, 2) == 1
    assert state.withdrawals.get(1).amount == 5


def test_discard_leaves_state_untouched() -> None:
    state = ChainState()
    state.ledger.deposit_security(2, 9)

    tx = state.begin()
    tx.register_user(ADDR1, (1, 2, 3, 4))
    assert tx.slash_security_deposit(2) == 9
    assert tx.security_deposit(2) == 0
    tx.discard()

    assert state.registry.count == 0
    assert state.ledger.get_security_deposit(2) == 9


def test_register_user_allocates_sequential_indices() -> None:
    state = ChainState()
    tx = state.begin()
    e1 = tx.register_user(ADDR1, (1, 2, 3, 4))
    e2 = tx.register_user(ADDR2, (5, 6, 7, 8))
    assert (e1.index, e2.index) == (1, 2)
    assert tx.user_count == 2
    assert tx.registry_entry(2) == e2
    assert tx.registry_entry(3) is None
    tx.commit()

    tx2 = state.begin()
    assert tx2.register_user(ADDR1, (1, 2, 3, 4)).index == 3
    assert tx2.registry_entry(1) == e1


def test_seq_no_cannot_decrease_within_transaction() -> None:
    tx = ChainState().begin()
    tx.set_seq_no(1, 2, 2)
    with pytest.raises(ValueError):
        tx.set_seq_no(1, 2, 1)


def test_closed_transaction_rejects_writes() -> None:
    tx = ChainState().begin()
    tx.commit()
    with pytest.raises(TransactionClosedError):
        tx.set_account(1, Account(balance=1))
    with pytest.raises(TransactionClosedError):
        tx.commit()
