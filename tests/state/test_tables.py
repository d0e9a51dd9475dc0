"""Tests for the registry, account, record and withdrawal tables."""

from __future__ import annotations

import pytest

from receiptnet.state.accounts import Account, AccountLedger
from receiptnet.state.canonical import (
    UINT64_MAX,
    address_from_bytes,
    canonical_address,
    canonical_json_bytes,
    decode_uint,
    encode_uint,
)
from receiptnet.state.records import RecordTable
from receiptnet.state.registry import RegistryEntry, RegistryTable
from receiptnet.state.withdrawals import NO_WITHDRAWAL, PendingWithdrawal, WithdrawalTable


PK = (1, 2, 3, 4)
ADDR = "0x" + "ab" * 20


def test_encode_uint_is_big_endian_fixed_width() -> None:
    assert encode_uint(1, nbytes=8) == b"\x00" * 7 + b"\x01"
    assert encode_uint(UINT64_MAX, nbytes=8) == b"\xff" * 8
    with pytest.raises(ValueError):
        encode_uint(UINT64_MAX + 1, nbytes=8)
    with pytest.raises(ValueError):
        encode_uint(-1, nbytes=8)
    with pytest.raises(TypeError):
        encode_uint(True, nbytes=8)


def test_decode_uint_bounds_checked() -> None:
    data = bytes(range(10))
    assert decode_uint(data, 8, 2) == 0x0809
    with pytest.raises(ValueError):
        decode_uint(data, 9, 2)


def test_canonical_address_lowercases_and_prefixes() -> None:
    assert canonical_address("AB" * 20) == ADDR
    assert address_from_bytes(bytes.fromhex("ab" * 20)) == ADDR
    with pytest.raises(ValueError):
        canonical_address("0x" + "ab" * 19)
    with pytest.raises(ValueError):
        canonical_address("0x" + "zz" * 20)


def test_canonical_json_rejects_floats() -> None:
    assert canonical_json_bytes({"b": 1, "a": [2]}) == b'{"a":[2],"b":1}'
    with pytest.raises(TypeError):
        canonical_json_bytes({"a": 1.5})


class TestRegistryTable:
    def test_indices_are_dense_and_one_based(self) -> None:
        table = RegistryTable()
        table.append(RegistryEntry(index=1, address=ADDR, public_key=PK))
        with pytest.raises(ValueError):
            table.append(RegistryEntry(index=3, address=ADDR, public_key=PK))
        table.append(RegistryEntry(index=2, address=ADDR, public_key=PK))
        assert table.count == 2
        assert table.address_of(2) == ADDR
        assert table.public_key_of(1) == PK
        assert table.get(3) is None

    def test_entries_are_write_once(self) -> None:
        table = RegistryTable()
        table.append(RegistryEntry(index=1, address=ADDR, public_key=PK))
        with pytest.raises(ValueError):
            table.append(RegistryEntry(index=1, address=ADDR, public_key=(5, 6, 7, 8)))
        assert table.public_key_of(1) == PK

    def test_index_zero_is_reserved(self) -> None:
        with pytest.raises(ValueError):
            RegistryEntry(index=0, address=ADDR, public_key=PK)


class TestAccountLedger:
    def test_absent_accounts_read_as_zero_and_stay_sparse(self) -> None:
        ledger = AccountLedger()
        assert ledger.get_account(7) == Account()
        ledger.credit(7, 10)
        assert ledger.get_account(7) == Account(balance=10, nonce=0)
        ledger.set_account(7, Account())
        assert ledger.get_all_accounts() == {}

    def test_negative_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            Account(balance=-1)
        with pytest.raises(ValueError):
            AccountLedger().set_security_deposit(1, -5)

    def test_security_deposit_accumulates(self) -> None:
        ledger = AccountLedger()
        ledger.deposit_security(1, 5)
        ledger.deposit_security(1, 7)
        assert ledger.get_security_deposit(1) == 12


class TestRecordTable:
    def test_records_start_at_zero_and_never_decrease(self) -> None:
        records = RecordTable()
        assert records.get(1, 2) == 0
        records.set(1, 2, 3)
        assert records.get(1, 2) == 3
        assert records.get(2, 1) == 0
        with pytest.raises(ValueError):
            records.set(1, 2, 2)


class TestWithdrawalTable:
    def test_sentinel_clears_entry(self) -> None:
        table = WithdrawalTable()
        assert table.get(1) == NO_WITHDRAWAL
        assert not table.get(1).is_pending

        table.set(1, PendingWithdrawal(amount=5, valid_after=100))
        assert table.get(1).is_pending
        table.set(1, NO_WITHDRAWAL)
        assert table.get_all() == {}
