"""Tests for the calldata codec: selectors, post() layout and decoding."""

from __future__ import annotations

import pytest

from receiptnet.core.types import InitWithdraw, Post, ProcessWithdrawal, ReceiptEntry, Register
from receiptnet.integration.calldata import (
    INIT_WITHDRAW_SELECTOR,
    POST_SELECTOR,
    PROCESS_WITHDRAWAL_SELECTOR,
    REGISTER_SELECTOR,
    CalldataError,
    UnknownSelectorError,
    decode_call,
    encode_init_withdraw,
    encode_post,
    encode_process_withdrawal,
    encode_register,
    post_calldata_length,
)
from receiptnet.state.canonical import UINT64_MAX, UINT128_MAX, keccak256


ADDR = "0x" + "cd" * 20
SIG = (11, 22)


def test_selectors_are_keccak_prefixes_and_distinct() -> None:
    assert POST_SELECTOR == keccak256(b"post()")[:4]
    assert len({REGISTER_SELECTOR, INIT_WITHDRAW_SELECTOR, PROCESS_WITHDRAWAL_SELECTOR, POST_SELECTOR}) == 4


def test_post_layout_offsets() -> None:
    data = encode_post(5, SIG, [(2, 50), (3, UINT128_MAX)])
    assert len(data) == post_calldata_length(2) == 78 + 2 * 24
    assert data[:4] == POST_SELECTOR
    assert int.from_bytes(data[4:12], "big") == 5
    assert int.from_bytes(data[12:14], "big") == 2
    assert int.from_bytes(data[14:46], "big") == 11
    assert int.from_bytes(data[46:78], "big") == 22
    assert int.from_bytes(data[78:86], "big") == 2
    assert int.from_bytes(data[86:102], "big") == 50
    assert int.from_bytes(data[110:126], "big") == UINT128_MAX


def test_decode_post() -> None:
    call = decode_call(encode_post(1, SIG, [(2, 50)]))
    assert call == Post(a_index=1, signature=SIG, receipts=(ReceiptEntry(b_index=2, amount=50),))


def test_decode_empty_post() -> None:
    call = decode_call(encode_post(UINT64_MAX, SIG, []))
    assert isinstance(call, Post)
    assert call.a_index == UINT64_MAX
    assert call.receipts == ()


def test_decode_word_calls() -> None:
    pk = (1, 2, 3, 4)
    assert decode_call(encode_register(ADDR, pk, SIG)) == Register(ADDR, pk, SIG)
    assert decode_call(encode_init_withdraw(3, 40, SIG)) == InitWithdraw(3, 40, SIG)
    assert decode_call(encode_process_withdrawal(3)) == ProcessWithdrawal(3)


def test_register_address_word_must_be_left_padded() -> None:
    data = bytearray(encode_register(ADDR, (1, 2, 3, 4), SIG))
    data[4] = 1
    with pytest.raises(CalldataError):
        decode_call(bytes(data))


def test_out_of_range_word_rejected() -> None:
    data = bytearray(encode_process_withdrawal(1))
    data[4] = 1  # top byte of the u64 word
    with pytest.raises(CalldataError):
        decode_call(bytes(data))


def test_unknown_and_short_selector() -> None:
    with pytest.raises(UnknownSelectorError):
        decode_call(b"\xde\xad\xbe\xef" + bytes(32))
    with pytest.raises(CalldataError):
        decode_call(b"\x01\x02")


def test_encoders_reject_oversized_values() -> None:
    with pytest.raises(ValueError):
        encode_post(UINT64_MAX + 1, SIG, [])
    with pytest.raises(ValueError):
        encode_post(1, SIG, [(2, UINT128_MAX + 1)])
    with pytest.raises(ValueError):
        encode_init_withdraw(1, UINT128_MAX + 1, SIG)
